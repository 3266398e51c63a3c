STAGES = ("read", "transform", "write")


class Work2WordError(Exception):
    pass


class ConversionError(Work2WordError):
    """A failed conversion, tagged with the stage that failed."""

    def __init__(self, stage: str, message: str):
        if stage not in STAGES:
            raise ValueError(f"unknown conversion stage: {stage}")
        super().__init__(message)
        self.stage = stage
        self.message = message

    def __str__(self):
        return self.message


class UnsupportedFormatError(ConversionError):
    def __init__(self, fmt):
        super().__init__("transform", f"unsupported output format: {fmt}")
        self.format = fmt


class ConversionCancelled(ConversionError):
    def __init__(self, message: str = "conversion cancelled"):
        super().__init__("transform", message)


class SourceReadError(Work2WordError):
    def __init__(self, path: str, message: str):
        super().__init__(message)
        self.path = path
