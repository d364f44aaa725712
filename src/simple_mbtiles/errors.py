# %%
#|export
class MBTilesError(Exception):
    """Base class for errors raised while accessing an MBTiles file"""


class NotFoundError(MBTilesError, FileNotFoundError):
    pass


class IncompleteContainerError(MBTilesError):
    """A -journal file sits next to the tileset; it is still being written"""


class OpenError(MBTilesError):
    pass


class InvalidContainerError(MBTilesError):
    """The file lacks the tiles or metadata table"""


class UnrecognizedFormatError(MBTilesError, ValueError):
    pass


class ClosedHandleError(MBTilesError):
    pass


class DecodeError(MBTilesError, ValueError):
    """A metadata value could not be converted to its expected type"""
