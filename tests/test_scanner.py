import json
import tempfile
import unittest
from pathlib import Path

from modvalidator.config import MOD_JSON_FILE, VORTEX_MARKER_FILE
from modvalidator.core.fs import LocalFileSystem, MemoryFileSystem
from modvalidator.core.scanner import ModMetadataError, parse_mod_json, scan_mods


def _mod_json(**fields) -> str:
    return json.dumps(fields)


class TestParseModJson(unittest.TestCase):
    def test_all_fields(self):
        info = parse_mod_json(
            _mod_json(displayName="Core", version="1.2", defaultLoadOrder=5), "/Mods/core", "core"
        )
        self.assertEqual(info.display_name, "Core")
        self.assertEqual(info.version, "1.2")
        self.assertEqual(info.load_order, 5)
        self.assertEqual(info.directory, "/Mods/core")
        self.assertFalse(info.managed_externally)

    def test_defaults(self):
        info = parse_mod_json("{}", "/Mods/SomeFolder", "SomeFolder")
        self.assertEqual(info.display_name, "SomeFolder")
        self.assertEqual(info.version, "Unknown")
        self.assertEqual(info.load_order, 999)

    def test_empty_name_falls_back_to_directory(self):
        info = parse_mod_json(_mod_json(displayName=""), "/Mods/Dir", "Dir")
        self.assertEqual(info.display_name, "Dir")

    def test_negative_and_float_orders(self):
        self.assertEqual(parse_mod_json(_mod_json(defaultLoadOrder=-3), "/d", "d").load_order, -3)
        self.assertEqual(parse_mod_json(_mod_json(defaultLoadOrder=7.0), "/d", "d").load_order, 7)

    def test_bad_load_order(self):
        for value in (True, "5", 2.5, [1]):
            with self.subTest(value=value):
                with self.assertRaises(ModMetadataError):
                    parse_mod_json(_mod_json(defaultLoadOrder=value), "/d", "d")

    def test_bad_documents(self):
        with self.assertRaises(ValueError):
            parse_mod_json("{ nope", "/d", "d")
        with self.assertRaises(ModMetadataError):
            parse_mod_json("[]", "/d", "d")
        with self.assertRaises(ModMetadataError):
            parse_mod_json(_mod_json(displayName=12), "/d", "d")


class TestScanMemory(unittest.TestCase):
    def setUp(self):
        self.fs = MemoryFileSystem()
        self.fs.make_dirs("/Mods")

    def add(self, folder: str, text: str = None, vortex: bool = False):
        if text is None:
            self.fs.make_dirs(f"/Mods/{folder}")
        else:
            self.fs.write_text(f"/Mods/{folder}/{MOD_JSON_FILE}", text)
        if vortex:
            self.fs.write_text(f"/Mods/{folder}/{VORTEX_MARKER_FILE}", "")

    def test_missing_directory(self):
        self.assertEqual(scan_mods("/Nowhere", self.fs), [])
        self.assertEqual(scan_mods("", self.fs), [])
        self.assertEqual(scan_mods(None, self.fs), [])

    def test_skips_folders_without_mod_json(self):
        self.add("NotAMod")
        self.add("Real", _mod_json(displayName="Real"))
        mods = scan_mods("/Mods", self.fs)
        self.assertEqual([m.display_name for m in mods], ["Real"])

    def test_sorted_by_load_order(self):
        self.add("a", _mod_json(displayName="Late", defaultLoadOrder=30))
        self.add("b", _mod_json(displayName="Early", defaultLoadOrder=10))
        self.add("c", _mod_json(displayName="Middle", defaultLoadOrder=20))
        mods = scan_mods("/Mods", self.fs)
        self.assertEqual([m.display_name for m in mods], ["Early", "Middle", "Late"])

    def test_equal_orders_keep_directory_order(self):
        self.add("zeta", _mod_json(displayName="Z", defaultLoadOrder=1))
        self.add("alpha", _mod_json(displayName="A", defaultLoadOrder=1))
        self.add("mid", _mod_json(displayName="M"))
        mods = scan_mods("/Mods", self.fs)
        self.assertEqual([m.display_name for m in mods], ["A", "Z", "M"])

    def test_vortex_marker(self):
        self.add("Managed", _mod_json(displayName="Managed"), vortex=True)
        self.add("Manual", _mod_json(displayName="Manual"))
        by_name = {m.display_name: m for m in scan_mods("/Mods", self.fs)}
        self.assertTrue(by_name["Managed"].managed_externally)
        self.assertFalse(by_name["Manual"].managed_externally)

    def test_bad_mod_json_is_skipped_and_logged(self):
        self.add("Broken", "{ not json")
        self.add("BoolOrder", _mod_json(displayName="BoolOrder", defaultLoadOrder=True))
        self.add("Good", _mod_json(displayName="Good"))

        with self.assertLogs("modvalidator.scanner", level="WARNING") as cm:
            mods = scan_mods("/Mods", self.fs)

        self.assertEqual([m.display_name for m in mods], ["Good"])
        text = "\n".join(cm.output)
        self.assertIn("Error parsing mod.json in Broken", text)
        self.assertIn("Error parsing mod.json in BoolOrder", text)

    def test_deeply_nested_mod_json_skips_only_that_folder(self):
        depth = 100000
        self.add("Bad", "[" * depth + "]" * depth)
        self.add("Good", _mod_json(displayName="Good"))

        with self.assertLogs("modvalidator.scanner", level="WARNING") as cm:
            mods = scan_mods("/Mods", self.fs)

        self.assertEqual([m.display_name for m in mods], ["Good"])
        self.assertIn("Error parsing mod.json in Bad", "\n".join(cm.output))

    def test_nested_folders_are_not_scanned(self):
        self.fs.write_text(f"/Mods/Outer/Inner/{MOD_JSON_FILE}", _mod_json(displayName="Inner"))
        self.assertEqual(scan_mods("/Mods", self.fs), [])


class TestScanDisk(unittest.TestCase):
    def test_local_filesystem(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            (root / "B").mkdir()
            (root / "B" / MOD_JSON_FILE).write_text(
                _mod_json(displayName="Bravo", version="2.0", defaultLoadOrder=2), encoding="utf-8"
            )
            (root / "A").mkdir()
            # BOM-prefixed files still parse
            (root / "A" / MOD_JSON_FILE).write_text(
                "\ufeff" + _mod_json(displayName="Alpha", defaultLoadOrder=1), encoding="utf-8"
            )
            (root / "A" / VORTEX_MARKER_FILE).write_text("", encoding="utf-8")
            (root / "loose.txt").write_text("not a folder", encoding="utf-8")

            mods = scan_mods(str(root), LocalFileSystem())

        self.assertEqual([m.display_name for m in mods], ["Alpha", "Bravo"])
        self.assertTrue(mods[0].managed_externally)
        self.assertEqual(mods[1].version, "2.0")
        self.assertTrue(mods[1].directory.endswith("B"))


if __name__ == "__main__":
    unittest.main()
