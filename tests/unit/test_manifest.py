from __future__ import annotations

import json
from pathlib import Path

from vibesafe.ingest.manifest import resolve_manifest


def _pairs(packages) -> list[tuple[str, str, str]]:
    return [(p.name, p.version, p.ecosystem) for p in packages]


def test_package_lock_v2_wins_over_package_json(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text(json.dumps({"dependencies": {"express": "4.18.2"}}))
    (tmp_path / "package-lock.json").write_text(
        json.dumps(
            {
                "lockfileVersion": 3,
                "packages": {
                    "": {"name": "app", "version": "1.0.0"},
                    "node_modules/lodash": {"version": "4.17.20"},
                    "node_modules/a/node_modules/lodash": {"version": "4.17.20"},
                    "node_modules/@scope/pkg": {"version": "2.0.0"},
                    "node_modules/local": {"resolved": "../local", "link": True},
                },
            }
        )
    )
    packages = resolve_manifest(tmp_path)
    assert _pairs(packages) == [("lodash", "4.17.20", "npm"), ("@scope/pkg", "2.0.0", "npm")]
    assert {p.manifest for p in packages} == {"package-lock.json"}


def test_package_lock_v1(tmp_path: Path) -> None:
    (tmp_path / "package-lock.json").write_text(
        json.dumps({"lockfileVersion": 1, "dependencies": {"minimist": {"version": "1.2.5"}}})
    )
    assert _pairs(resolve_manifest(tmp_path)) == [("minimist", "1.2.5", "npm")]


def test_package_json_keeps_only_pinnable_versions(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text(
        json.dumps(
            {
                "dependencies": {"express": "^4.18.2", "react": "latest", "local": "file:../local"},
                "devDependencies": {"jest": "~29.7.0", "ts": ">=5 <6"},
            }
        )
    )
    assert _pairs(resolve_manifest(tmp_path)) == [("express", "4.18.2", "npm"), ("jest", "29.7.0", "npm")]


def test_requirements_pins(tmp_path: Path) -> None:
    (tmp_path / "requirements.txt").write_text(
        "# deps\n"
        "Django==3.2.0\n"
        "requests[socks]==2.25.1 ; python_version >= '3.8'\n"
        "flask>=2.0\n"
        "-r other.txt\n"
    )
    packages = resolve_manifest(tmp_path)
    assert _pairs(packages) == [("Django", "3.2.0", "PyPI"), ("requests", "2.25.1", "PyPI")]
    assert packages[0].manifest == "requirements.txt"


def test_poetry_lock_wins_over_requirements(tmp_path: Path) -> None:
    (tmp_path / "requirements.txt").write_text("flask==1.0\n")
    (tmp_path / "poetry.lock").write_text(
        '[[package]]\nname = "jinja2"\nversion = "2.11.2"\n\n[[package]]\nname = "urllib3"\nversion = "1.26.4"\n'
    )
    assert _pairs(resolve_manifest(tmp_path)) == [("jinja2", "2.11.2", "PyPI"), ("urllib3", "1.26.4", "PyPI")]


def test_pipfile_lock(tmp_path: Path) -> None:
    (tmp_path / "Pipfile.lock").write_text(
        json.dumps({"default": {"pyyaml": {"version": "==5.3"}}, "develop": {"pytest": {"version": "*"}}})
    )
    assert _pairs(resolve_manifest(tmp_path)) == [("pyyaml", "5.3", "PyPI")]


def test_both_ecosystems_collected(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text(json.dumps({"dependencies": {"lodash": "4.17.20"}}))
    (tmp_path / "requirements.txt").write_text("django==3.2.0\n")
    assert [p.ecosystem for p in resolve_manifest(tmp_path)] == ["npm", "PyPI"]


def test_malformed_manifest_yields_nothing(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text("{ not json")
    assert resolve_manifest(tmp_path) == []


def test_no_manifest(tmp_path: Path) -> None:
    assert resolve_manifest(tmp_path) == []
