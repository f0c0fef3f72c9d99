import pytest

from paynews.settings import (
    DEFAULT_CACHE_PATH,
    DEFAULT_COMPANIES,
    PACKAGE_DIR,
    Settings,
    describe_settings,
    ensure_live_env,
    load_news_config,
    load_settings,
)


def test_defaults_without_environment(tmp_path):
    settings = load_settings(tmp_path)
    assert settings.perplexity_api_key is None
    assert settings.perplexity_model == "sonar"
    assert settings.table == "payarticles"
    assert settings.perplexity_max_attempts == 4


def test_vite_names_are_accepted(tmp_path, monkeypatch):
    monkeypatch.setenv("VITE_PERPLEXITY_API_KEY", "pplx-123")
    monkeypatch.setenv("VITE_SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setenv("VITE_SUPABASE_ANON_KEY", "anon")
    monkeypatch.setenv("PAYNEWS_CACHE_PATH", str(tmp_path / "cache.json"))

    settings = load_settings(tmp_path)

    assert settings.perplexity_api_key == "pplx-123"
    assert settings.supabase_url == "https://project.supabase.co"
    assert settings.supabase_key == "anon"
    assert settings.cache_path == tmp_path / "cache.json"


def test_dotenv_file_is_loaded(tmp_path):
    (tmp_path / ".env").write_text("PERPLEXITY_API_KEY=from-dotenv\nPAYNEWS_TABLE=articles\n", encoding="utf-8")
    settings = load_settings(tmp_path)
    assert settings.perplexity_api_key == "from-dotenv"
    assert settings.table == "articles"


def test_ensure_live_env_lists_missing_keys():
    with pytest.raises(RuntimeError, match="PERPLEXITY_API_KEY, SUPABASE_URL, SUPABASE_KEY"):
        ensure_live_env(Settings())
    ensure_live_env(Settings(perplexity_api_key="k", supabase_url="u", supabase_key="s"))


def test_describe_settings_hides_secrets():
    summary = describe_settings(Settings(perplexity_api_key="secret-key"))
    assert summary["perplexity_key_exists"] is True
    assert summary["perplexity_key_length"] == len("secret-key")
    assert "secret-key" not in str(summary)


def test_news_config_from_repository():
    config = load_news_config()
    assert config.companies == DEFAULT_COMPANIES
    assert config.article_count == 5
    assert (config.prompts_dir / "news_fetch.md").exists()


def test_news_config_partial_and_invalid(tmp_path):
    partial = tmp_path / "news.yaml"
    partial.write_text("article_count: 3\ncompanies: [Stripe]\n", encoding="utf-8")
    config = load_news_config(partial)
    assert config.article_count == 3
    assert config.companies == ["Stripe"]
    assert config.min_relevance_score == 7.0

    partial.write_text("companies: [unclosed\n", encoding="utf-8")
    assert load_news_config(partial).article_count == 5
    assert load_news_config(tmp_path / "missing.yaml").article_count == 5


def test_resources_ship_inside_the_package():
    from paynews.gates.validation import SCHEMA_PATH

    config = load_news_config()
    assert config.prompts_dir.is_relative_to(PACKAGE_DIR)
    assert SCHEMA_PATH.is_relative_to(PACKAGE_DIR)
    assert SCHEMA_PATH.exists()
    assert not DEFAULT_CACHE_PATH.is_relative_to(PACKAGE_DIR)


def test_dotenv_is_read_from_working_directory(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("PERPLEXITY_API_KEY=from-cwd\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    assert load_settings().perplexity_api_key == "from-cwd"
