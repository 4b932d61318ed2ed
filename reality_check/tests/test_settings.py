from reality_check.config.settings import Settings


def test_blank_api_key_is_treated_as_missing():
    assert Settings(api_key="   ").api_key is None
    assert Settings(api_key=" abc ").api_key == "abc"


def test_env_overrides_defaults(monkeypatch):
    monkeypatch.setenv("API_KEY", "from-env-123")
    monkeypatch.setenv("MAX_INPUT_CHARS", "200")
    cfg = Settings()
    assert cfg.api_key == "from-env-123"
    assert cfg.max_input_chars == 200


def test_yaml_config_file(monkeypatch, tmp_path):
    path = tmp_path / "reality.yaml"
    path.write_text("top_k: 32\ngemini_base_url: http://localhost:9999/v1beta\n", encoding="utf-8")
    monkeypatch.setenv("REALITY_CHECK_CONFIG_FILE", str(path))
    monkeypatch.delenv("TOP_K", raising=False)
    monkeypatch.delenv("GEMINI_BASE_URL", raising=False)
    cfg = Settings()
    assert cfg.top_k == 32
    assert cfg.gemini_base_url == "http://localhost:9999/v1beta"
    assert cfg.default_model == "reframe"
