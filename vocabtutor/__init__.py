"""vocabtutor - AI vocabulary pronunciation tutor."""

__version__ = "0.1.0"
