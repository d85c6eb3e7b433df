from solbcs.encoding.bcs import BcsDecoder, BcsEncoder

__all__ = ['BcsDecoder', 'BcsEncoder']
