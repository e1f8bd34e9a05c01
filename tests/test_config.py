from scheduling_engine.config import DEFAULT_CONFIG, EngineConfig, load_config


def test_defaults_without_file():
    assert load_config() == DEFAULT_CONFIG
    config = EngineConfig.load()
    assert config.confidence_cutoff == 0.8
    assert config.cooldown_hours["trend_response"] == 168


def test_yaml_overrides_merge_over_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "adaptive_learning:\n"
        "  monitoring_interval_days: 3\n"
        "  cooldown_hours:\n"
        "    model_switch: 2\n",
        encoding="utf-8",
    )
    config = EngineConfig.load(path)
    assert config.monitoring_interval_days == 3
    assert config.cooldown_hours["model_switch"] == 2
    assert config.cooldown_hours["context_optimization"] == 12
    assert config.reading_retention_days == 30


def test_missing_or_invalid_file_falls_back_to_defaults(tmp_path):
    assert load_config(tmp_path / "absent.yaml") == DEFAULT_CONFIG

    listing = tmp_path / "list.yaml"
    listing.write_text("- a\n- b\n", encoding="utf-8")
    assert load_config(listing) == DEFAULT_CONFIG

    broken = tmp_path / "broken.yaml"
    broken.write_text("adaptive_learning: [unclosed\n", encoding="utf-8")
    assert load_config(broken) == DEFAULT_CONFIG


def test_loaded_config_does_not_alias_defaults():
    config = load_config()
    config["adaptive_learning"]["cooldown_hours"]["model_switch"] = 1
    assert DEFAULT_CONFIG["adaptive_learning"]["cooldown_hours"]["model_switch"] == 24
