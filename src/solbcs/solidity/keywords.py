"""Reserved words of Solidity that cannot be used as identifiers."""

_RESERVED = {
    'abstract', 'after', 'alias', 'anonymous', 'as', 'assembly', 'break',
    'catch', 'constant', 'continue', 'constructor', 'contract', 'delete',
    'do', 'else', 'emit', 'enum', 'error', 'event', 'external', 'fallback',
    'for', 'function', 'if', 'immutable', 'import', 'indexed', 'interface',
    'internal', 'is', 'library', 'mapping', 'memory', 'modifier', 'new',
    'override', 'payable', 'pragma', 'private', 'public', 'pure', 'receive',
    'return', 'returns', 'revert', 'storage', 'struct', 'throw', 'try',
    'type', 'unchecked', 'using', 'virtual', 'view', 'while', 'addmod',
    'blockhash', 'ecrecover', 'keccak256', 'mulmod', 'sha256', 'ripemd160',
    'block', 'msg', 'tx', 'balance', 'transfer', 'send', 'call', 'delegatecall',
    'staticcall', 'this', 'super', 'gwei', 'finney', 'szabo', 'ether', 'seconds',
    'minutes', 'hours', 'days', 'weeks', 'years', 'wei', 'hex', 'address',
    'bool', 'bytes', 'string', 'int', 'uint', 'true', 'false', 'calldata',
}
_RESERVED.update(f'int{n}' for n in range(8, 257, 8))
_RESERVED.update(f'uint{n}' for n in range(8, 257, 8))
_RESERVED.update(f'bytes{n}' for n in range(1, 33))

KEYWORDS = frozenset(_RESERVED)


def is_keyword(name: str) -> bool:
    return name in KEYWORDS


def safe_variable(name: str) -> str:
    """Append a trailing underscore to names that collide with a keyword."""
    if name in KEYWORDS:
        return name + '_'
    return name
