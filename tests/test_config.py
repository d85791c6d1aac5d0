"""
Tests for config.py.
"""

import pytest
import yaml

from term_cluster_ai.config import (
    EmbeddingBackend,
    Settings,
    SummaryBackend,
    create_default_config,
    load_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("OPENAI_API_KEY", "OPENROUTER_API_KEY"):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_defaults(self):
        settings = Settings()

        assert settings.embedding.provider == EmbeddingBackend.SENTENCE_TRANSFORMERS
        assert settings.summarization.provider == SummaryBackend.OPENROUTER
        assert settings.glossary.min_similarity == 0.75
        assert settings.glossary.semantic_candidate_limit == 10
        assert settings.clustering.join_threshold == 0.75
        assert settings.clustering.similar_documents_min_similarity == 0.7
        assert settings.paths.database_path.is_absolute()

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "nope.yaml").logging.level == "INFO"


class TestYaml:
    def test_values_and_env_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MY_ROUTER_KEY", "secret")
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "embedding": {"provider": "none"},
                    "summarization": {"api_key": "${MY_ROUTER_KEY}", "model": "fast"},
                    "clustering": {"join_threshold": 0.8},
                    "logging": {"level": "debug"},
                }
            ),
            encoding="utf-8",
        )

        settings = load_config(path)

        assert settings.embedding.provider == EmbeddingBackend.NONE
        assert settings.summarization.api_key == "secret"
        assert settings.clustering.join_threshold == 0.8
        assert settings.logging.level == "DEBUG"

    def test_api_keys_fall_back_to_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
        monkeypatch.setenv("OPENROUTER_API_KEY", "sk-router")

        default = Settings()
        openai_summaries = Settings(summarization={"provider": "openai"})

        assert default.embedding.openai_api_key == "sk-openai"
        assert default.summarization.api_key == "sk-router"
        assert openai_summaries.summarization.api_key == "sk-openai"

    def test_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            Settings(clustering={"join_threshold": 1.5})

    def test_default_config_file_loads(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"
        create_default_config(path)

        settings = load_config(path)

        assert settings.project.name == "my-translation-project"
        assert settings.paths.database_path.name == "term_cluster.duckdb"
