from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from runzip.charsets import Encoding, resolve
from runzip.detector import DetectionStrategy
from runzip.errors import RunzipError


class ConfigError(RunzipError):
    pass


@dataclass
class RunzipConfig:
    source: str | None = None
    target: str = "utf-8"
    cp866: bool = False
    detector: str = DetectionStrategy.FREQUENCY.value
    verbose: int = 0
    report: Path | None = None

    @staticmethod
    def from_mapping(payload: dict[str, Any]) -> RunzipConfig:
        known = {"source", "target", "cp866", "detector", "verbose", "report"}
        unknown = sorted(set(payload) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        detector = str(payload.get("detector", DetectionStrategy.FREQUENCY.value)).lower()
        if detector not in {s.value for s in DetectionStrategy}:
            raise ConfigError(f"Unknown detector '{detector}'")
        return RunzipConfig(
            source=str(payload["source"]) if payload.get("source") else None,
            target=str(payload.get("target") or "utf-8"),
            cp866=bool(payload.get("cp866", False)),
            detector=detector,
            verbose=int(payload.get("verbose", 0)),
            report=Path(payload["report"]) if payload.get("report") else None,
        )


def load_config(path: Path) -> RunzipConfig:
    if path.suffix.lower() in {".yml", ".yaml"}:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    else:
        payload = json.loads(path.read_text(encoding="utf-8"))
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ConfigError(f"Config file must hold a mapping: {path}")
    return RunzipConfig.from_mapping(payload)


def resolve_encodings(config: RunzipConfig) -> tuple[Encoding | None, Encoding]:
    """Turn configured names into encodings; ``cp866`` mode beats ``target``."""
    source = resolve(config.source) if config.source else None
    target = Encoding.CP866 if config.cp866 else resolve(config.target)
    return source, target
