from pathlib import Path

import pytest

from solbcs.cli.main import main as cli_main

REGISTRY = """
Foo:
  STRUCT:
    - a: BOOL
    - x:
        OPTION: U32
"""


@pytest.fixture
def registry_path(tmp_path: Path) -> Path:
    path = tmp_path / "registry.yaml"
    path.write_text(REGISTRY)
    return path


def test_cli_generate_to_file(registry_path: Path, tmp_path: Path) -> None:
    output_path = tmp_path / "Registry.sol"

    assert cli_main(["generate", str(registry_path), "-o", str(output_path), "--module-name", "Registry"]) == 0

    source = output_path.read_text()
    assert source.startswith("/// SPDX-License-Identifier: UNLICENSED\npragma solidity ^0.8.0;")
    assert "library Registry {" in source
    assert "function decode_Foo(bytes memory input)" in source
    assert "function encode_opt_uint32(" in source


def test_cli_generate_to_stdout(registry_path: Path, capsys) -> None:
    assert cli_main(["generate", str(registry_path), "--license", "MIT", "--solidity-version", "0.8.24"]) == 0

    output = capsys.readouterr().out
    # The library is named after the input file by default
    assert "library registry {" in output
    assert "/// SPDX-License-Identifier: MIT" in output
    assert "pragma solidity 0.8.24;" in output


def test_cli_generate_unsupported(tmp_path: Path, capsys) -> None:
    input_path = tmp_path / "floats.yaml"
    input_path.write_text("Foo:\n  NEWTYPESTRUCT: F64\n")
    output_path = tmp_path / "Floats.sol"

    assert cli_main(["generate", str(input_path), "-o", str(output_path)]) == 1

    assert not output_path.exists()
    assert "Error" in capsys.readouterr().err


def test_cli_generate_missing_file(tmp_path: Path, capsys) -> None:
    assert cli_main(["generate", str(tmp_path / "missing.yaml")]) == 1
    assert "does not exist" in capsys.readouterr().err


def test_cli_generate_invalid_module_name(registry_path: Path, capsys) -> None:
    assert cli_main(["generate", str(registry_path), "--module-name", "not valid"]) == 1
    assert "Error" in capsys.readouterr().err


def test_cli_inspect(registry_path: Path, capsys) -> None:
    assert cli_main(["inspect", str(registry_path)]) == 0

    output = capsys.readouterr().out
    assert "opt_uint32" in output
    assert "Foo" in output
    assert "memory" in output
    assert "4 types" in output


def test_cli_inspect_cycle(tmp_path: Path, capsys) -> None:
    input_path = tmp_path / "cycle.yaml"
    input_path.write_text("A:\n  NEWTYPESTRUCT:\n    SEQ:\n      TYPENAME: A\n")

    assert cli_main(["inspect", str(input_path)]) == 1
    assert "circular" in capsys.readouterr().out


def test_cli_without_command(capsys) -> None:
    assert cli_main([]) == 0
    assert "generate" in capsys.readouterr().out
