import json
import tempfile
import unittest
from pathlib import Path

from PySide6.QtWidgets import QApplication
from PySide6.QtTest import QTest
from PySide6.QtCore import Qt

from modvalidator.config import AppConfig, RULES_FILE
from modvalidator.ui.main_window import MainWindow


class TestMainWindowUI(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        # Ensure one QApplication exists
        cls.app = QApplication.instance() or QApplication([])

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        root = Path(self._tmp.name)
        self.base_dir = root / "app"
        self.mods_dir = root / "Mods"
        self.base_dir.mkdir()
        self.mods_dir.mkdir()

        cfg = AppConfig(rules_directory=str(self.base_dir))
        self.window = MainWindow(config=cfg, config_path=str(root / "modvalidator_config.json"))
        self.window.show()
        QTest.qWaitForWindowExposed(self.window)

    def tearDown(self):
        self.window.close()
        self._tmp.cleanup()

    def add_mod(self, name, order):
        folder = self.mods_dir / name
        folder.mkdir()
        (folder / "mod.json").write_text(
            json.dumps({"displayName": name, "version": "1.0", "defaultLoadOrder": order}),
            encoding="utf-8",
        )

    def click(self, name):
        btn = self.window.findChild(type(self.window.btn_scan), name)
        self.assertIsNotNone(btn, f"button not found (objectName='{name}')")
        QTest.mouseClick(btn, Qt.LeftButton)

    def test_scan_updates_results_list(self):
        self.add_mod("CoreMod", 1)
        self.add_mod("PatchMod", 2)

        # Fill fields directly (faster than file dialog)
        mods_edit = self.window.findChild(type(self.window.mods_edit), "mods_edit")
        mods_edit.setText(str(self.mods_dir))

        self.click("btn_scan")

        results = self.window.findChild(type(self.window.results_list), "results_list")
        self.assertGreater(results.count(), 0)
        self.assertIn("Scan OK: 2 mod(s) found", results.item(0).text())

        table = self.window.findChild(type(self.window.mods_table), "mods_table")
        self.assertEqual(table.rowCount(), 2)
        self.assertEqual(table.item(0, 1).text(), "CoreMod")

        log_box = self.window.findChild(type(self.window.log_box), "log_box")
        self.assertIn("SCAN", log_box.toPlainText())
        self.assertIn("Found 2 installed mod(s):", log_box.toPlainText())

        self.assertEqual(self.window.status_label.text(), "Validation passed")
        self.assertTrue(self.window.btn_export.isEnabled())

    def test_scan_with_issues(self):
        self.add_mod("CoreMod", 2)
        self.add_mod("PatchMod", 1)
        (self.base_dir / RULES_FILE).write_text(
            json.dumps({
                "ModChecks": [{"Mod": "Missing", "IsRequired": True}],
                "OrderRules": [{"Mod": "PatchMod", "MustLoadAfter": ["CoreMod"]}],
            }),
            encoding="utf-8",
        )

        self.window.mods_edit.setText(str(self.mods_dir))
        self.click("btn_scan")

        texts = [self.window.results_list.item(i).text() for i in range(self.window.results_list.count())]
        self.assertTrue(any("MOD_MISSING" in t for t in texts))
        self.assertTrue(any("LOAD_ORDER_VIOLATION" in t for t in texts))
        self.assertEqual(self.window.status_label.text(), "Validation failed")

    def test_startup_rules_log_reaches_log_panel(self):
        self.assertIn("No mod order rules file found", self.window.log_box.toPlainText())

        (self.base_dir / RULES_FILE).write_text('{"Blacklist": ["OldCamera"]}', encoding="utf-8")
        window = MainWindow(config=AppConfig(rules_directory=str(self.base_dir)))
        window.show()
        try:
            text = window.log_box.toPlainText()
        finally:
            window.close()

        self.assertIn("Loaded 1 blacklisted mod(s) from program directory", text)
        self.assertLess(text.index("Loaded 1 blacklisted"), text.index("Ready."))

    def test_missing_folder_reports_error(self):
        self.window.mods_edit.setText(str(self.mods_dir / "nope"))
        self.click("btn_scan")

        self.assertIn("Mods folder not found", self.window.results_list.item(0).text())
        self.assertFalse(self.window.btn_export.isEnabled())

    def test_export_writes_report_and_manifest(self):
        self.add_mod("CoreMod", 1)
        self.window.mods_edit.setText(str(self.mods_dir))
        self.click("btn_scan")

        report = Path(self._tmp.name) / "out" / "report.html"
        written = self.window.export_report(str(self.mods_dir), str(report))

        self.assertIsNotNone(written)
        self.assertTrue(report.exists())
        self.assertTrue(report.with_suffix(".json").exists())

    def test_save_settings(self):
        self.window.mods_edit.setText("%USERPROFILE%/Mods")
        self.click("btn_save")

        saved = json.loads((Path(self._tmp.name) / "modvalidator_config.json").read_text(encoding="utf-8"))
        self.assertEqual(saved["modsDirectory"], "%USERPROFILE%/Mods")
        self.assertEqual(saved["rulesDirectory"], str(self.base_dir))


if __name__ == "__main__":
    unittest.main()
