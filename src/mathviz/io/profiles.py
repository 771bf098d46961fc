from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any, Dict, List

from mathviz.core import constants


def profiles_root(home: Path | None = None) -> Path:
    base = home or Path.home()
    return base / ".mathviz" / "profiles"


def profile_dir(profile: str, home: Path | None = None) -> Path:
    return profiles_root(home) / profile


def profile_meta_path(profile: str, home: Path | None = None) -> Path:
    return profile_dir(profile, home) / "profile.json"


def profile_exists(profile: str, home: Path | None = None) -> bool:
    return profile_meta_path(profile, home).exists()


def list_profiles(home: Path | None = None) -> List[str]:
    root = profiles_root(home)
    if not root.exists():
        return []
    return sorted(p.name for p in root.iterdir() if (p / "profile.json").exists())


def build_profile_meta(
    system: str,
    params: Dict[str, float],
    initial: List[float],
    dt: float,
    steps: int,
) -> Dict[str, Any]:
    return {
        "version": constants.VERSION,
        "system": system,
        "params": {k: float(v) for k, v in params.items()},
        "initial": [float(v) for v in initial],
        "dt": float(dt),
        "steps": int(steps),
    }


def save_profile_meta(profile: str, meta: Dict[str, Any], home: Path | None = None) -> Path:
    meta_path = profile_meta_path(profile, home)
    meta_path.parent.mkdir(parents=True, exist_ok=True)
    with meta_path.open("w", encoding="utf-8") as f:
        json.dump(meta, f, indent=2)
    return meta_path


def load_profile_meta(profile: str, home: Path | None = None) -> Dict[str, Any]:
    meta_path = profile_meta_path(profile, home)
    if not meta_path.exists():
        raise ValueError(f"Profile '{profile}' not found. Available: {list_profiles(home)}")
    with meta_path.open("r", encoding="utf-8") as f:
        meta = json.load(f)
    for key in ("system", "params", "initial", "dt", "steps"):
        if key not in meta:
            raise ValueError(f"Profile '{profile}' is missing '{key}'")
    return meta


def delete_profile(profile: str, home: Path | None = None) -> None:
    if not profile_exists(profile, home):
        raise ValueError(f"Profile '{profile}' not found.")
    shutil.rmtree(profile_dir(profile, home))
