from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class VMCreateSchema(BaseModel):
    """
    Schema for provisioning a new VM.

    Disk layout:

    - `prebuilt_disk_path` set: that file is the root disk (vda) as-is.
    - otherwise a new root disk of `disk_size_gb` is created.
    - `data_disk_size_gb` adds a second, empty data disk (vdb).

    `iso_image` attaches a read-only cdrom that boots before the root disk.
    """

    # no coercion: JSON true or "1024" is not a valid memory size
    model_config = ConfigDict(strict=True)

    name: str = Field(
        ...,
        min_length=1,
        pattern=r"^[A-Za-z0-9][A-Za-z0-9._-]*$",
        description="Unique VM name, also used for disk file names",
    )
    memory_mb: int = Field(..., gt=0, description="RAM in MiB")
    cpus: int = Field(..., gt=0, description="Number of virtual CPUs")
    disk_size_gb: Optional[int] = Field(
        default=None,
        gt=0,
        description=(
            "Size of the new root disk in GiB. Required when prebuilt_disk_path "
            "is not set, rejected when it is"
        ),
    )
    data_disk_size_gb: Optional[int] = Field(
        default=None,
        gt=0,
        description=(
            "Size of an additional data disk (vdb) in GiB, optional with or "
            "without prebuilt_disk_path"
        ),
    )
    prebuilt_disk_path: Optional[str] = Field(
        default=None,
        description=(
            "Existing qcow2 image to use as the root disk; without it "
            "disk_size_gb must be given"
        ),
    )
    iso_image: Optional[str] = Field(
        default=None,
        description="Installation image attached as a cdrom",
    )

    @field_validator("prebuilt_disk_path", "iso_image")
    @classmethod
    def _empty_as_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _check_root_disk(self) -> "VMCreateSchema":
        if self.prebuilt_disk_path:
            if self.disk_size_gb is not None:
                raise ValueError(
                    "disk_size_gb sizes a new root disk and cannot be combined with "
                    "prebuilt_disk_path; use data_disk_size_gb for an extra disk"
                )
        elif self.disk_size_gb is None:
            raise ValueError("disk_size_gb is required when prebuilt_disk_path is not set")
        return self
