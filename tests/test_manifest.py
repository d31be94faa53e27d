import json
import tempfile
import unittest
from pathlib import Path

from modvalidator.core.manifest import build_manifest_dict, write_manifest_json
from modvalidator.core.reporting import build_findings, summarize
from modvalidator.models import ModCheck, ModInfo, OrderViolation, RuleSet


class TestManifest(unittest.TestCase):
    def test_manifest_write(self):
        mods = [
            ModInfo("CoreMod", "1.0", 1, directory="/Mods/core"),
            ModInfo("BadMod", "0.1", 2, directory="/Mods/bad", managed_externally=True),
        ]
        rules = RuleSet(
            mod_checks=(ModCheck("MissingMod", is_required=True),),
            blacklist=("badmod",),
            source="program directory",
            path="/app/mwvr_mod_validation_rules.json",
        )
        violations = [OrderViolation("CoreMod", "BadMod", 1, 2)]
        findings = build_findings(mods, rules.mod_checks, rules.blacklist, violations)
        summary = summarize(mods, rules.mod_checks, rules.blacklist, violations)

        manifest = build_manifest_dict(
            tool_name="Tool",
            tool_version="0.0",
            mods_dir="/Mods",
            rules=rules,
            mods=mods,
            violations=violations,
            findings=findings,
            summary=summary,
        )

        with tempfile.TemporaryDirectory() as td:
            path = write_manifest_json(manifest, str(Path(td) / "out" / "manifest.json"))
            self.assertTrue(Path(path).exists())
            loaded = json.loads(Path(path).read_text(encoding="utf-8"))

        self.assertEqual(loaded["tool"], "Tool")
        self.assertEqual(loaded["rules_source"], "program directory")
        self.assertEqual(len(loaded["mods"]), 2)
        self.assertEqual(loaded["mods"][1]["displayName"], "BadMod")
        self.assertTrue(loaded["mods"][1]["managedByVortex"])
        self.assertTrue(loaded["mods"][1]["blacklisted"])
        self.assertFalse(loaded["mods"][0]["blacklisted"])

        self.assertEqual(loaded["summary"]["missing_required_mods"], 1)
        self.assertEqual(loaded["summary"]["status"], "error")
        self.assertTrue(loaded["summary"]["has_errors"])

        self.assertEqual(
            loaded["violations"],
            [{"mod": "CoreMod", "required_before": "BadMod", "mod_order": 1, "required_order": 2}],
        )
        self.assertEqual([r["code"] for r in loaded["results"]],
                         ["MOD_MISSING", "MOD_BLACKLISTED", "LOAD_ORDER_VIOLATION"])


if __name__ == "__main__":
    unittest.main()
