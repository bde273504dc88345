import json

import pytest
import yaml

from pyroflow.configs import FluidConfig, ConfigManager, ConfigFormat, PresetManager
from pyroflow.utils.error_handling import ConfigurationError

def test_defaults_are_valid():
    config = FluidConfig()
    assert config.validate() == []
    assert config.check() is config
    assert config.resolution == 512
    assert config.diffusion_iterations == 10

@pytest.mark.parametrize("overrides", [
    {"resolution": 4},
    {"aspect_ratio": (0, 1)},
    {"diffusion": -1.0},
    {"velocity_diffusion": float("nan")},
    {"source_distance": 0.0},
    {"force_distance": -2.0},
    {"min_pyrolysis_temp": 0.8, "max_pyrolysis_temp": 0.2},
    {"combustion_heat": -0.5},
    {"diffusion_iterations": 0},
    {"falloff": "cubic"},
    {"initial_velocity": (1.0, 2.0, 3.0)},
])
def test_invalid_values_rejected(overrides):
    with pytest.raises(ConfigurationError):
        FluidConfig().updated(**overrides)

def test_validate_lists_every_problem():
    errors = FluidConfig(resolution=2, diffusion=-1.0, falloff="box").validate()
    assert len(errors) == 3

def test_unknown_field_rejected():
    with pytest.raises(ConfigurationError, match="Unknown configuration fields"):
        FluidConfig().updated(gravity=9.81)

def test_updated_converts_sequences():
    config = FluidConfig().updated(aspect_ratio=[16, 9], initial_velocity=[0.1, 0.0])
    assert config.aspect_ratio == (16, 9)
    assert config.initial_velocity == (0.1, 0.0)

def test_dict_roundtrip():
    config = FluidConfig(resolution=128, buoyancy=0.5, aspect_ratio=(4, 3))
    data = config.to_dict()
    assert data["aspect_ratio"] == [4, 3]
    assert FluidConfig.from_dict(data) == config

@pytest.mark.parametrize("filename,fmt", [
    ("params.yaml", ConfigFormat.YAML),
    ("params.json", ConfigFormat.JSON),
])
def test_save_and_load(tmp_path, filename, fmt):
    path = str(tmp_path / "configs" / filename)
    config = FluidConfig(resolution=64, falloff="gaussian", fuel_density=2.5)
    ConfigManager(config).save(path, fmt)

    loaded = ConfigManager().load(path)
    assert loaded == config

def test_partial_file_overrides_defaults(tmp_path):
    path = tmp_path / "partial.yaml"
    path.write_text(yaml.safe_dump({"resolution": 256, "vorticity": 1.5}))

    manager = ConfigManager()
    config = manager.load(str(path))
    assert config.resolution == 256
    assert config.vorticity == 1.5
    assert config.diffusion == FluidConfig().diffusion
    assert manager.config is config
    assert manager.validate() == []

def test_load_rejects_bad_files(tmp_path):
    not_a_mapping = tmp_path / "list.json"
    not_a_mapping.write_text(json.dumps([1, 2, 3]))
    with pytest.raises(ConfigurationError):
        ConfigManager().load(str(not_a_mapping))

    invalid = tmp_path / "invalid.yaml"
    invalid.write_text("diffusion: -5\n")
    manager = ConfigManager()
    with pytest.raises(ConfigurationError):
        manager.load(str(invalid))
    assert manager.config == FluidConfig()

class TestPresets:
    def test_builtin_presets(self):
        manager = PresetManager()
        assert {"smoke", "ink", "campfire"} <= set(manager.list_presets())
        for name in manager.list_presets():
            assert manager.get(name).to_config().validate() == []

    def test_preset_applies_on_top_of_base(self):
        base = FluidConfig(resolution=64)
        config = PresetManager().get("campfire").to_config(base)
        assert config.resolution == 64
        assert config.buoyancy == 0.5
        assert config.min_pyrolysis_temp == 0.2

    def test_unknown_preset(self):
        with pytest.raises(ConfigurationError, match="Unknown preset"):
            PresetManager().get("lava")

    def test_user_presets_persist(self, tmp_path):
        manager = PresetManager(str(tmp_path))
        manager.create_preset("thick", "Slow, viscous smoke", {"velocity_diffusion": 50.0},
                              tags=["viscous"])
        assert (tmp_path / "thick.json").exists()

        reloaded = PresetManager(str(tmp_path))
        preset = reloaded.get("thick")
        assert preset.tags == ["viscous"]
        assert preset.to_config().velocity_diffusion == 50.0

    def test_create_rejects_bad_parameters(self):
        with pytest.raises(ConfigurationError):
            PresetManager().create_preset("broken", "", {"resolution": 1})

    def test_import_rejects_malformed_file(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"name": "bad"}))
        with pytest.raises(ConfigurationError):
            PresetManager().import_preset(str(path))
