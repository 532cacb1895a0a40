"""Exceptions raised by NCBI Fetch."""


class NcbiFetchError(Exception):
    """Base class for fatal errors reported by the command line."""


class ConfigError(NcbiFetchError):
    """Invalid or missing options detected before any download."""


class TransferError(NcbiFetchError):
    def __init__(self, message, result=None):
        super().__init__(message)
        self.result = result


class ExtractionError(NcbiFetchError):
    """A downloaded archive could not be decompressed."""


class ManifestFormatError(NcbiFetchError):
    """Assembly summary does not have the expected layout."""


class ChecksumError(NcbiFetchError):
    def __init__(self, filename, expected, observed):
        super().__init__(
            f"MD5 mismatch for {filename}: expected {expected}, got {observed}"
        )
        self.filename = filename
        self.expected = expected
        self.observed = observed
