from pathlib import Path

from render_worker.config import DEFAULT_AD_DOMAINS, BrowserConfig, WorkerConfig, load_config


def test_defaults() -> None:
    config = WorkerConfig()

    assert config.max_concurrent_pages == 10
    assert config.browser.headless is True
    assert config.browser.block_media is False
    assert config.browser.ad_domains == DEFAULT_AD_DOMAINS
    assert config.navigation.wait_until == "load"
    assert config.navigation.default_timeout_ms == 15000
    assert config.actions.scroll_amount == 500
    assert config.service.port == 3003


def test_load_config_reads_env_file(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "RENDER_WORKER_MAX_CONCURRENT_PAGES=3",
                "RENDER_WORKER_BROWSER__BLOCK_MEDIA=true",
                "RENDER_WORKER_BROWSER__PROXY_SERVER=http://proxy.internal:3128",
                "RENDER_WORKER_NAVIGATION__DEFAULT_TIMEOUT_MS=20000",
            ]
        )
    )

    config = load_config(env_file=env_path)

    assert config.max_concurrent_pages == 3
    assert config.browser.block_media is True
    assert config.browser.proxy_server == "http://proxy.internal:3128"
    assert config.navigation.default_timeout_ms == 20000


def test_load_config_prioritises_overrides(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "RENDER_WORKER_MAX_CONCURRENT_PAGES=3",
                "RENDER_WORKER_BROWSER__HEADLESS=false",
            ]
        )
    )

    config_path = tmp_path / "worker.yaml"
    config_path.write_text(
        "\n".join(
            [
                "max_concurrent_pages: 6",
                "service:",
                "  port: 9000",
            ]
        )
    )

    config = load_config(config_path, env_file=env_path, service={"host": "127.0.0.1"})

    assert config.max_concurrent_pages == 6
    assert config.service.port == 9000
    assert config.service.host == "127.0.0.1"
    assert config.browser.headless is False


def test_proxy_settings_include_credentials_only_when_complete() -> None:
    assert BrowserConfig().proxy_settings() is None
    assert BrowserConfig(proxy_server="http://p:1", proxy_username="u").proxy_settings() == {
        "server": "http://p:1"
    }
    assert BrowserConfig(
        proxy_server="http://p:1", proxy_username="u", proxy_password="pw"
    ).proxy_settings() == {"server": "http://p:1", "username": "u", "password": "pw"}
