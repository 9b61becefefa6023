from pydantic import BaseModel, ConfigDict, Field


class LoadRecord(BaseModel):
    """
    What was loaded for a logical name.
    One record per normalized name; a later load of the same name replaces it.
    """

    name: str = Field(description="Normalized logical name without extension")
    path: str = Field(description="File that was executed for this name")
    mtime_ns: int = Field(description="Modification time of path when it was loaded")
    wrap: bool = Field(default=True, description="Wrap setting used for the load, reused on reload")


class AutoloaderOptions(BaseModel):
    """
    Options accepted by a scoped loader. Unknown keys are rejected.
    """

    model_config = ConfigDict(extra="forbid", strict=True)

    wrap: bool = Field(
        default=True,
        description="Execute files in an isolated module instead of a registered one",
    )
