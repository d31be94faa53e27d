import os
from dataclasses import replace
from pathlib import Path

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QMainWindow,
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QFileDialog,
    QListWidget,
    QListWidgetItem,
    QPlainTextEdit,
    QSplitter,
    QMessageBox,
    QTableWidget,
    QTableWidgetItem,
    QHeaderView,
)

from modvalidator.config import (
    APP_NAME,
    APP_VERSION,
    AppConfig,
    expand_path,
    load_config,
    program_dir,
    save_config,
)
from modvalidator.core.engine import ModValidationEngine
from modvalidator.core.manifest import build_manifest_dict, write_manifest_json
from modvalidator.core.reporting import (
    build_report_html,
    summary_issue_lines,
    summary_status,
    write_report_html,
)
from modvalidator.logs import CallbackHandler, LogBuffer, package_logger


class MainWindow(QMainWindow):
    def __init__(self, config: AppConfig = None, config_path: str = None):
        super().__init__()
        self.setWindowTitle(f"{APP_NAME} (v{APP_VERSION})")
        self.setMinimumSize(1020, 680)

        self._config_path = config_path
        self._config = config or load_config(config_path)

        base_dir = expand_path(self._config.rules_directory) or str(program_dir())
        # Rules are resolved before the log panel exists; replay those lines into it below
        startup_log = LogBuffer()
        package_logger().addHandler(startup_log)
        try:
            self._engine = ModValidationEngine(base_dir)
        finally:
            package_logger().removeHandler(startup_log)

        # --- Root widget
        root = QWidget()
        self.setCentralWidget(root)

        main_layout = QVBoxLayout(root)
        main_layout.setContentsMargins(12, 12, 12, 12)
        main_layout.setSpacing(10)

        # -------------------------
        # Top: Mods directory / rules directory
        # -------------------------
        self.mods_edit = QLineEdit()
        self.mods_edit.setPlaceholderText("Select the game's Mods folder (%VARS% are expanded)...")
        self.mods_edit.setText(self._config.mods_directory)

        btn_mods = QPushButton("Browse...")
        btn_mods.clicked.connect(self.pick_mods_folder)

        mods_row = QHBoxLayout()
        mods_row.addWidget(QLabel("Mods:"))
        mods_row.addWidget(self.mods_edit, 1)
        mods_row.addWidget(btn_mods)

        self.rules_edit = QLineEdit()
        self.rules_edit.setReadOnly(True)
        self.rules_edit.setText(base_dir)

        rules_row = QHBoxLayout()
        rules_row.addWidget(QLabel("Rules:"))
        rules_row.addWidget(self.rules_edit, 1)

        main_layout.addLayout(mods_row)
        main_layout.addLayout(rules_row)

        # -------------------------
        # Buttons
        # -------------------------
        btn_row = QHBoxLayout()

        self.status_label = QLabel("Not scanned")
        btn_row.addWidget(self.status_label)
        btn_row.addStretch(1)

        self.btn_scan = QPushButton("Scan")
        self.btn_scan.clicked.connect(self.on_scan_clicked)

        self.btn_reload = QPushButton("Reload Rules")
        self.btn_reload.clicked.connect(self.on_reload_rules_clicked)

        self.btn_export = QPushButton("Export Report")
        self.btn_export.setEnabled(False)  # enabled after Scan
        self.btn_export.clicked.connect(self.on_export_report_clicked)

        self.btn_save = QPushButton("Save Settings")
        self.btn_save.clicked.connect(self.on_save_settings_clicked)

        btn_row.addWidget(self.btn_scan)
        btn_row.addWidget(self.btn_reload)
        btn_row.addWidget(self.btn_export)
        btn_row.addWidget(self.btn_save)

        main_layout.addLayout(btn_row)

        # -------------------------
        # Bottom: Mods + Results + Logs
        # -------------------------
        splitter = QSplitter(Qt.Horizontal)

        left_panel = QWidget()
        left_layout = QVBoxLayout(left_panel)
        left_layout.setContentsMargins(0, 0, 0, 0)

        left_layout.addWidget(QLabel("Installed Mods"))
        self.mods_table = QTableWidget(0, 4)
        self.mods_table.setHorizontalHeaderLabels(["Order", "Name", "Version", "Notes"])
        self.mods_table.horizontalHeader().setSectionResizeMode(1, QHeaderView.Stretch)
        self.mods_table.verticalHeader().setVisible(False)
        self.mods_table.setEditTriggers(QTableWidget.NoEditTriggers)
        left_layout.addWidget(self.mods_table, 2)

        left_layout.addWidget(QLabel("Results"))
        self.results_list = QListWidget()
        left_layout.addWidget(self.results_list, 1)

        logs_panel = QWidget()
        logs_layout = QVBoxLayout(logs_panel)
        logs_layout.setContentsMargins(0, 0, 0, 0)

        logs_layout.addWidget(QLabel("Log"))
        self.log_box = QPlainTextEdit()
        self.log_box.setReadOnly(True)
        self.log_box.setPlaceholderText("Logs will appear here...")
        logs_layout.addWidget(self.log_box, 1)

        splitter.addWidget(left_panel)
        splitter.addWidget(logs_panel)
        splitter.setSizes([600, 420])

        main_layout.addWidget(splitter, 1)

        # Route package log records into the log panel
        for msg in startup_log.messages():
            self.log(msg)
        self._log_handler = CallbackHandler(self.log)
        package_logger().addHandler(self._log_handler)

        self.log("Ready. Choose the Mods folder, then Scan.")

        # Stable IDs for UI tests
        self.mods_edit.setObjectName("mods_edit")
        self.rules_edit.setObjectName("rules_edit")
        self.btn_scan.setObjectName("btn_scan")
        self.btn_reload.setObjectName("btn_reload")
        self.btn_export.setObjectName("btn_export")
        self.btn_save.setObjectName("btn_save")
        self.status_label.setObjectName("status_label")
        self.mods_table.setObjectName("mods_table")
        self.results_list.setObjectName("results_list")
        self.log_box.setObjectName("log_box")

    # -------------------------
    # UI Helpers
    # -------------------------
    def log(self, msg: str):
        self.log_box.appendPlainText(msg)

    def add_result(self, level: str, message: str):
        text = f"[{level}] {message}"
        item = QListWidgetItem(text)

        lvl = level.upper().strip()
        if lvl == "ERROR":
            item.setForeground(Qt.red)
        elif lvl == "WARNING":
            item.setForeground(Qt.darkYellow)
        else:
            item.setForeground(Qt.darkGreen)

        self.results_list.addItem(item)

    def closeEvent(self, event):
        package_logger().removeHandler(self._log_handler)
        super().closeEvent(event)

    def pick_mods_folder(self):
        folder = QFileDialog.getExistingDirectory(self, "Select Mods Folder")
        if folder:
            self.mods_edit.setText(os.path.normpath(folder))
            self.log(f"Mods folder set: {folder}")

    def _mods_dir(self) -> str:
        return expand_path(self.mods_edit.text().strip())

    def _fill_mods_table(self, mods):
        rules = self._engine.rules
        self.mods_table.setRowCount(len(mods))
        for row, m in enumerate(mods):
            notes = []
            if m.managed_externally:
                notes.append("Vortex")
            if rules.is_blacklisted(m.display_name):
                notes.append("Blacklisted")

            self.mods_table.setItem(row, 0, QTableWidgetItem(str(m.load_order)))
            self.mods_table.setItem(row, 1, QTableWidgetItem(m.display_name))
            self.mods_table.setItem(row, 2, QTableWidgetItem(m.version))
            self.mods_table.setItem(row, 3, QTableWidgetItem(", ".join(notes)))

    def _show_summary(self, summary):
        status = summary_status(summary)
        if status == "error":
            self.status_label.setText("Validation failed")
            self.status_label.setStyleSheet("color: #8a0000; font-weight: 600;")
        elif status == "warning":
            self.status_label.setText("Validation passed with warnings")
            self.status_label.setStyleSheet("color: #7a5200; font-weight: 600;")
        else:
            self.status_label.setText("Validation passed")
            self.status_label.setStyleSheet("color: #006400; font-weight: 600;")

        issues = summary_issue_lines(summary)
        if issues:
            self.add_result("ERROR" if summary.has_errors else "WARNING", "Issues: " + "; ".join(issues))

    # -------------------------
    # Scan
    # -------------------------
    def on_scan_clicked(self):
        self.results_list.clear()
        self.mods_table.setRowCount(0)
        self.btn_export.setEnabled(False)

        mods_dir = self._mods_dir()
        if not mods_dir or not os.path.isdir(mods_dir):
            self.add_result("ERROR", f"Mods folder not found: {mods_dir or '(empty)'}")
            self.status_label.setText("Not scanned")
            return

        self.log("---- SCAN START ----")
        mods = self._engine.scan_installed_mods(mods_dir)
        summary = self._engine.last_summary()

        rules = self._engine.rules
        self.add_result("INFO", f"Scan OK: {len(mods)} mod(s) found")
        self.add_result("INFO", f"Rules: {rules.source or 'none'}")

        def _sort_key(r):
            lvl = (r.level or "INFO").upper()
            pri = {"ERROR": 0, "WARNING": 1, "INFO": 2}.get(lvl, 3)
            return (pri, r.code, r.subject or "")

        for r in sorted(self._engine.last_findings(), key=_sort_key):
            self.add_result(r.level, f"{r.code}: {r.message}")

        self._fill_mods_table(mods)
        self._show_summary(summary)
        self.btn_export.setEnabled(True)

        self.log("---- SCAN DONE ----")

    def on_reload_rules_clicked(self):
        mods_dir = self._mods_dir()
        rules = self._engine.reload_rules(mods_dir if mods_dir and os.path.isdir(mods_dir) else None)
        if rules.is_empty:
            self.add_result("INFO", "No validation rules loaded")
        else:
            self.add_result(
                "INFO",
                f"Rules loaded from {rules.source}: {len(rules.mod_checks)} check(s), "
                f"{len(rules.blacklist)} blacklisted, {len(rules.order_rules)} order rule(s)",
            )

    # -------------------------
    # Export
    # -------------------------
    def on_export_report_clicked(self):
        mods_dir = self._mods_dir()
        report_path, _ = QFileDialog.getSaveFileName(self, "Save Report", "mod_report.html", "HTML Files (*.html)")
        if not report_path:
            return
        self.export_report(mods_dir, report_path)

    def export_report(self, mods_dir: str, report_path: str):
        rules = self._engine.rules
        mods = self._engine.last_mods()
        findings = self._engine.last_findings()
        summary = self._engine.last_summary()

        manifest_path = str(Path(report_path).with_suffix(".json"))

        try:
            html_text = build_report_html(
                tool_name=APP_NAME,
                tool_version=APP_VERSION,
                mods_dir=mods_dir,
                rules_source=rules.source,
                mods=mods,
                findings=findings,
                summary=summary,
                blacklist=rules.blacklist,
            )
            written_report = write_report_html(html_text, report_path)

            manifest = build_manifest_dict(
                tool_name=APP_NAME,
                tool_version=APP_VERSION,
                mods_dir=mods_dir,
                rules=rules,
                mods=mods,
                violations=self._engine.last_violations(),
                findings=findings,
                summary=summary,
            )
            written_manifest = write_manifest_json(manifest, manifest_path)
        except Exception as e:
            self.add_result("ERROR", f"EXPORT_FAILED: {e}")
            QMessageBox.critical(self, "Export Failed", f"Export failed:\n{e}")
            return None

        self.add_result("INFO", f"Report written: {written_report}")
        self.add_result("INFO", f"Manifest written: {written_manifest}")
        self.log(f"Report exported: {written_report}")
        self.log(f"Manifest exported: {written_manifest}")
        return written_report, written_manifest

    def on_save_settings_clicked(self):
        self._config = replace(self._config, mods_directory=self.mods_edit.text().strip())
        try:
            path = save_config(self._config, self._config_path)
        except Exception as e:
            QMessageBox.critical(self, "Save Failed", str(e))
            return
        self.add_result("INFO", f"Settings saved: {path}")
        self.log(f"Settings saved: {path}")
