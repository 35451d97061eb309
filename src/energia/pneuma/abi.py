"""
Artifact Loader - Loads contract bytecode from the sc-meta build output.

Single source of truth: output/energy-factory.mxsc.json (the contract
build artifact).  The "code" field holds the hex-encoded WASM.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from ..errors import ArtifactError

DEFAULT_CONTRACT_CODE = Path("output") / "energy-factory.mxsc.json"


def get_code_path() -> Path:
    """Get the artifact path from environment or default."""
    configured = os.environ.get("CONTRACT_CODE")
    return Path(configured).expanduser() if configured else DEFAULT_CONTRACT_CODE


def _read_artifact(artifact_path: Path) -> dict[str, Any]:
    if not artifact_path.exists():
        raise ArtifactError(
            f"Contract artifact not found: {artifact_path}. "
            f"Run 'sc-meta all build' in the contract directory or set CONTRACT_CODE."
        )

    try:
        with artifact_path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise ArtifactError(f"Invalid artifact JSON {artifact_path}: {exc}") from exc


@lru_cache(maxsize=4)
def load_bytecode(artifact_path: Path) -> bytes:
    """
    Load deployment bytecode from an mxsc.json artifact.

    Args:
        artifact_path: Path to the *.mxsc.json file

    Returns:
        Raw WASM bytes

    Raises:
        ArtifactError: If the file is missing or carries no code
    """
    artifact = _read_artifact(artifact_path)

    code = artifact.get("code", "")
    if not code:
        raise ArtifactError(f"No code in artifact {artifact_path}")

    try:
        return bytes.fromhex(code.removeprefix("0x"))
    except ValueError as exc:
        raise ArtifactError(f"Artifact code is not hex: {artifact_path}") from exc


def contract_name(artifact_path: Path) -> str:
    """Contract name recorded in the artifact build info."""
    artifact = _read_artifact(artifact_path)
    return artifact.get("buildInfo", {}).get("contractCrate", {}).get("name", artifact_path.stem)
