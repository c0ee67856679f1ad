# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Exception classes for MetaMorph

This module defines the exceptions raised inside the EXIF codec.
None of them escape the metadata orchestrator: it converts them into
an empty or degraded result.

Copyright 2025 DNAi inc.
"""


class MetaMorphError(Exception):
    """
    Base exception for all MetaMorph errors.
    
    All MetaMorph exceptions inherit from this class, allowing
    catch-all error handling at the orchestrator boundary.
    """
    def __init__(self, message: str = ""):
        """
        Initialize the exception with an optional error message.
        
        Args:
            message: Descriptive error message explaining what went wrong
        """
        self.message = message
        super().__init__(message)


class MetadataReadError(MetaMorphError):
    """
    Raised when an EXIF payload cannot be read.
    
    This exception is raised when:
    - The payload does not start with the Exif preamble
    - The TIFF header has a bad byte order mark or magic number
    - The 0th IFD offset points outside the payload
    - The JPEG marker stream is truncated before the first scan
    """
    pass


class MetadataWriteError(MetaMorphError):
    """
    Raised when an EXIF payload cannot be built or spliced.
    
    This exception is raised when:
    - An APP1 payload does not start with the Exif preamble
    - The serialized payload does not fit in one APP1 segment
    """
    pass


class UnsupportedFormatError(MetaMorphError):
    """
    Raised when the input is not a JPEG byte stream.
    """
    pass


class InvalidTagError(MetaMorphError):
    """
    Raised when a tag value does not match its declared type.
    
    This exception is raised when:
    - An integer does not fit the SHORT or LONG range
    - A stored type code is not one the parser reads
    - The writer gets a tag outside TAG_TYPES, or a value of another type
    - The 0th IFD passed to the writer already carries ExifIFDPointer
    - A Metadata field name is unknown (from_dict, EditSession.update)
    """
    pass
