import pytest
from pydantic import ValidationError

from victry.config import Settings


def test_rejects_unknown_environment() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="qa")


def test_rejects_unknown_llm_provider() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, llm_provider="mystery")


def test_model_follows_selected_provider() -> None:
    anthropic_settings = Settings(_env_file=None, llm_provider="anthropic", anthropic_model="claude-x")
    openai_settings = Settings(_env_file=None, llm_provider="openai", openai_model="gpt-x")

    assert anthropic_settings.llm_model == "claude-x"
    assert openai_settings.llm_model == "gpt-x"


def test_cors_origins_are_split_and_trimmed() -> None:
    settings = Settings(_env_file=None, cors_origins="http://a.test, http://b.test,,")
    assert settings.cors_origin_list == ["http://a.test", "http://b.test"]
