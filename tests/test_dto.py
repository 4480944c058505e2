import json

import pytest
import yaml

from config import DEFAULT_FILTER_METHOD, DEFAULT_KERNEL_SIZE, DEFAULT_SIGMA
from core.dto import FilterStepDTO, ImageProcessDTO, VolumeProcessDTO


def test_filter_step_parse():
    step = FilterStepDTO.parse("Gaussian:kernel_size=5,sigma=1.5,note=x")
    assert step.name == "gaussian"
    assert step.params == {"kernel_size": 5, "sigma": 1.5, "note": "x"}
    assert FilterStepDTO.parse("gray") == FilterStepDTO("gray")


def test_filter_step_parse_rejects_malformed_param():
    with pytest.raises(ValueError):
        FilterStepDTO.parse("median:5")


def test_filter_step_from_dict_merges_inline_params():
    step = FilterStepDTO.from_dict({"name": "threshold", "threshold": 90, "params": {"mode": 2}})
    assert step.params == {"threshold": 90, "mode": 2}
    assert FilterStepDTO.from_dict("box:kernel_size=3").params == {"kernel_size": 3}


def test_volume_process_dto_defaults():
    dto = VolumeProcessDTO.from_dict({})
    assert dto == VolumeProcessDTO()
    assert dto.filter_method == DEFAULT_FILTER_METHOD
    assert dto.kernel_size == DEFAULT_KERNEL_SIZE
    assert dto.sigma == DEFAULT_SIGMA
    assert dto.reduction == "projection"
    assert dto.z_range is None


def test_volume_process_dto_round_trip():
    dto = VolumeProcessDTO(
        input_path="slices",
        z_range=(2, 9),
        volume_filters=(FilterStepDTO("median_3d", {"kernel_size": 3}),),
        reduction="slice",
        slice_type="yz",
        slice_index=4,
        image_filters=(FilterStepDTO("equalize"),),
        export_formats=("png", "npy"),
    )
    assert VolumeProcessDTO.from_dict(dto.to_dict()) == dto


def test_image_process_dto_from_yaml_and_json(tmp_path):
    payload = {
        "input_path": "in.png",
        "filters": ["median:kernel_size=3", {"name": "brightness", "delta": 10}],
        "output_path": "out.png",
    }
    yaml_path = tmp_path / "run.yaml"
    yaml_path.write_text(yaml.safe_dump(payload), encoding="utf-8")
    json_path = tmp_path / "run.json"
    json_path.write_text(json.dumps(payload), encoding="utf-8")

    from_yaml = ImageProcessDTO.from_file(str(yaml_path))
    from_json = ImageProcessDTO.from_file(str(json_path))
    assert from_yaml == from_json
    assert [s.name for s in from_yaml.filters] == ["median", "brightness"]
    assert from_yaml.filters[1].params == {"delta": 10}
