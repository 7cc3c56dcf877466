import pytest
from pydantic import ValidationError

from schemas.vm_schema import VMCreateSchema


def base_payload(**overrides):
    payload = {"name": "web-01", "memory_mb": 1024, "cpus": 2, "disk_size_gb": 10}
    payload.update(overrides)
    return payload


def test_valid_new_root_disk():
    schema = VMCreateSchema(**base_payload())

    assert schema.name == "web-01"
    assert schema.disk_size_gb == 10
    assert schema.prebuilt_disk_path is None
    assert schema.data_disk_size_gb is None
    assert schema.iso_image is None


def test_valid_prebuilt_with_data_disk():
    schema = VMCreateSchema(
        name="db-01",
        memory_mb=2048,
        cpus=4,
        prebuilt_disk_path="/images/base.qcow2",
        data_disk_size_gb=50,
    )

    assert schema.prebuilt_disk_path == "/images/base.qcow2"
    assert schema.data_disk_size_gb == 50


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": ""},
        {"name": "../etc"},
        {"name": "a/b"},
        {"memory_mb": 0},
        {"memory_mb": -512},
        {"cpus": 0},
        {"cpus": -1},
        {"disk_size_gb": 0},
        {"data_disk_size_gb": 0},
        {"memory_mb": True, "cpus": True},
        {"memory_mb": "1024", "cpus": "2"},
        {"disk_size_gb": "10"},
        {"data_disk_size_gb": True},
        {"cpus": 2.0},
    ],
)
def test_invalid_fields_rejected(overrides):
    with pytest.raises(ValidationError):
        VMCreateSchema(**base_payload(**overrides))


@pytest.mark.parametrize("field", ["name", "memory_mb", "cpus"])
def test_required_fields(field):
    payload = base_payload()
    del payload[field]

    with pytest.raises(ValidationError):
        VMCreateSchema(**payload)


def test_root_disk_size_required_without_prebuilt():
    payload = base_payload()
    del payload["disk_size_gb"]

    with pytest.raises(ValidationError, match="disk_size_gb is required"):
        VMCreateSchema(**payload)


def test_root_disk_size_not_allowed_with_prebuilt():
    with pytest.raises(ValidationError, match="cannot be combined"):
        VMCreateSchema(**base_payload(prebuilt_disk_path="/images/base.qcow2"))


def test_empty_optional_paths_are_absent():
    schema = VMCreateSchema(**base_payload(iso_image="", prebuilt_disk_path="  "))

    assert schema.iso_image is None
    assert schema.prebuilt_disk_path is None


def test_disk_field_descriptions_state_root_disk_rule():
    fields = VMCreateSchema.model_fields

    assert "Required when prebuilt_disk_path is not set" in fields["disk_size_gb"].description
    assert "disk_size_gb must be given" in fields["prebuilt_disk_path"].description
    assert "optional" in fields["data_disk_size_gb"].description
