from __future__ import annotations

import json
from pathlib import Path

from modvalidator.config import RESOURCES_SUBPATH, RULES_FILE, VORTEX_MARKER_FILE
from modvalidator.core.rules import from_json_dict, save_rules


def _mod(root: Path, folder: str, name: str, version: str, order: int) -> Path:
    d = root / folder
    d.mkdir(parents=True, exist_ok=True)
    (d / "mod.json").write_text(
        json.dumps({"displayName": name, "version": version, "defaultLoadOrder": order}, indent=2),
        encoding="utf-8",
    )
    return d


def main():
    root = Path("demo_mods/Mods")

    _mod(root, "CoreFramework", "Core Framework", "2.1", 10)
    _mod(root, "WeaponsPack", "Weapons Pack", "1.4", 200)
    _mod(root, "WeaponsPatch", "Weapons Patch", "1.0", 150)  # loads before Weapons Pack
    vortex = _mod(root, "HudTweaks", "HUD Tweaks", "0.9", 300)
    (vortex / VORTEX_MARKER_FILE).write_bytes(b"")
    _mod(root, "OldCamera", "Old Camera", "1.0", 400)
    (root / "NotAMod").mkdir(parents=True, exist_ok=True)

    rules = from_json_dict(
        {
            "ModChecks": [
                {"Mod": "Core Framework", "Version": "2.1", "IsRequired": True},
                {"Mod": "Cockpit Overhaul", "IsRequired": True},
                {"Mod": "HUD Tweaks", "Version": "1.0"},
            ],
            "Blacklist": ["Old Camera"],
            "OrderRules": [{"Mod": "Weapons Patch", "MustLoadAfter": ["Weapons Pack"]}],
            "LoadOrderChains": [["Core Framework", "Weapons Pack", "HUD Tweaks"]],
        }
    )
    path = save_rules(str(root.joinpath(*RESOURCES_SUBPATH, RULES_FILE)), rules)

    print(f"Created demo mods at: {root.resolve()}")
    print(f"Rules file: {path.resolve()}")


if __name__ == "__main__":
    main()
