from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import yaml

from agentaccess.ui import cli
from tests.support.records import card_body, policy_body

if TYPE_CHECKING:
    from pathlib import Path

    from agentaccess.config import OperatorConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "AGENT_ACCESS_GATEWAY_NAME",
        "AGENT_ACCESS_GATEWAY_NAMESPACE",
        "AGENT_ACCESS_ISSUER_URL",
        "AGENT_ACCESS_WATCH_NAMESPACE",
    ):
        monkeypatch.delenv(name, raising=False)


def _write(path: Path, document: dict[str, object]) -> Path:
    path.write_text(yaml.safe_dump(document), encoding="utf-8")
    return path


def test_run_builds_config_from_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[OperatorConfig] = []
    monkeypatch.setattr(cli, "run_operator", captured.append)

    cli.main(
        ["run", "--gateway-name", "gw", "--gateway-namespace", "infra", "--namespace", "agents"]
    )

    (config,) = captured
    assert config.gateway.name == "gw"
    assert config.gateway.namespace == "infra"
    assert config.watch_namespace == "agents"


def test_run_without_gateway_exits_with_usage_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "run_operator", lambda config: None)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["run"])

    assert excinfo.value.code == 2


def test_run_failure_exits_with_one(monkeypatch: pytest.MonkeyPatch) -> None:
    def explode(config: OperatorConfig) -> None:
        raise RuntimeError("cluster unreachable")

    monkeypatch.setattr(cli, "run_operator", explode)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["run", "--gateway-name", "gw"])

    assert excinfo.value.code == 1


def test_render_prints_generated_manifests(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    card = _write(tmp_path / "card.yaml", card_body("weather", labels={"tier": "premium"}))
    policy = _write(
        tmp_path / "policy.yaml",
        policy_body(selector={"tier": "premium"}, ingress={"allowedAgents": ["planner"]}),
    )

    cli.main(["render", "--gateway-name", "gw", "--card", str(card), "--policy", str(policy)])

    documents = list(yaml.safe_load_all(capsys.readouterr().out))
    assert [document["kind"] for document in documents] == ["HTTPRoute", "AuthPolicy"]
    assert documents[0]["spec"]["parentRefs"][0]["name"] == "gw"


def test_render_rejects_invalid_card(tmp_path: Path) -> None:
    card = _write(tmp_path / "card.yaml", card_body("weather", protocols=[]))

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["render", "--gateway-name", "gw", "--card", str(card)])

    assert excinfo.value.code == 2


def test_render_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["render", "--gateway-name", "gw", "--card", str(tmp_path / "nope.yaml")])

    assert excinfo.value.code == 2
