# gui.py

# Copyright (C) 2025 The CaieAsm authors. License: GNU GPL Version 3
# See CaieAsm/README and LICENSE

# This file is part of CaieAsm. CaieAsm is free software: you can
# redistribute it and/or modify it under the terms of the GNU General
# Public License as published by the Free Software Foundation, either
# version 3 of the License, or (at your option) any later version.
# CaieAsm is distributed in the hope that it will be useful, but
# WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
# General Public License for more details. You should have received
# a copy of the GNU General Public License along with CaieAsm. If
# not, see <https://www.gnu.org/licenses/>.

# -------------------------------------------------------------------------
# gui.py is the desktop front end: source editor, console, registers,
# memory grid and run controls. The emulator runs on the GUI thread,
# paced by a QTimer.
# -------------------------------------------------------------------------

import sys

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QAction, QActionGroup, QColor, QIcon, QTextOption
from PySide6.QtWidgets import (
    QApplication, QMainWindow, QTextEdit, QPushButton, QVBoxLayout, QHBoxLayout,
    QTableView, QHeaderView, QSplitter, QGroupBox, QFileDialog, QToolBar, QLabel,
    QLineEdit, QSpinBox, QMessageBox, QColorDialog, QToolButton, QMenu
)
from PySide6.QtGui import QStandardItemModel, QStandardItem

import common
import architecture as arch
import arithmetic as arith
import assembler
import emulator
import loader
import state

# Milliseconds between host ticks. Unlimited speed takes one step per tick.
tick_interval_ms = 16

class RegisterModel(QStandardItemModel):
    def __init__(self, es):
        super().__init__(10, 2)
        self.es = es
        self.setHorizontalHeaderLabels(["Register", "Value"])
        self.previous_values = {} # Changed values are highlighted

    def rows(self):
        es = self.es
        regs = es.registers()
        show = lambda x: arith.show_word(x, es.value_as_hex)
        return [
            ("PC", show(regs["PC"])),
            ("CIR", arch.show_instruction(*es.cir)),
            ("IX", show(regs["IX"])),
            ("MDR", show(es.mdr.value) if es.mdr.is_value() else str(es.mdr)),
            ("MAR", show(regs["MAR"])),
            ("ACC", show(regs["ACC"])),
        ] + [(name.capitalize(), str(int(x))) for name, x in es.flags().items()]

    def update(self):
        for i, (name, value) in enumerate(self.rows()):
            name_item = QStandardItem(name)
            value_item = QStandardItem(value)
            if name in self.previous_values and self.previous_values[name] != value:
                value_item.setBackground(Qt.GlobalColor.yellow)
            self.setItem(i, 0, name_item)
            self.setItem(i, 1, value_item)
            self.previous_values[name] = value

class MemoryModel(QStandardItemModel):
    def __init__(self, es):
        super().__init__(common.mem_rows, common.mem_cols)
        self.es = es
        self.setHorizontalHeaderLabels([f"{i:02X}" for i in range(common.mem_cols)])
        self.setVerticalHeaderLabels([f"{i * common.mem_cols:02X}" for i in range(common.mem_rows)])

    def show_cell(self, c):
        if c.is_instruction():
            return arch.show_instruction(c.opcode, c.operand).strip()
        return arith.show_word(c.value, self.es.value_as_hex)

    def update(self):
        es = self.es
        for row in range(common.mem_rows):
            for col in range(common.mem_cols):
                a = row * common.mem_cols + col
                c = es.cell(a)
                item = QStandardItem(self.show_cell(c))
                item.setToolTip(f"Address {arith.show_address(a)}\n{c!r}")
                if es.highlight_pc_location and a == es.pc:
                    item.setBackground(QColor(*es.pc_highlight_color))
                self.setItem(row, col, item)

class MainWindow(QMainWindow):
    def __init__(self, es=None):
        super().__init__()
        self.setWindowTitle(common.APP_TITLE)
        self.setGeometry(100, 100, 1400, 900)

        self.es = es if es is not None else state.InterpreterState()
        self.runner = emulator.Runner(self.es)
        self.current_file = None

        main_splitter = QSplitter(Qt.Orientation.Horizontal)
        self.setCentralWidget(main_splitter)

        # Left side: source editor above the console
        left_vertical_splitter = QSplitter(Qt.Orientation.Vertical)
        main_splitter.addWidget(left_vertical_splitter)

        code_group = QGroupBox("Code Editor")
        code_layout = QVBoxLayout(code_group)
        self.code_editor = QTextEdit()
        self.code_editor.setWordWrapMode(QTextOption.NoWrap)
        self.code_editor.setAcceptRichText(False)
        self.code_editor.setPlainText(self.es.source_code)
        code_layout.addWidget(self.code_editor)

        load_row = QHBoxLayout()
        load_row.addWidget(QLabel("Load program to"))
        self.load_location = QSpinBox()
        self.load_location.setRange(0, common.max_address)
        self.load_location.setValue(self.es.program_load_location)
        self.load_location.setToolTip("Memory address where the first line of the "
                                      "assembled program is loaded")
        load_row.addWidget(self.load_location)
        self.load_button = QPushButton("Assemble and load")
        self.load_button.clicked.connect(self.assemble_and_load)
        load_row.addWidget(self.load_button)
        load_row.addStretch()
        code_layout.addLayout(load_row)
        left_vertical_splitter.addWidget(code_group)

        io_group = QGroupBox("Console")
        io_layout = QVBoxLayout(io_group)
        self.console = QTextEdit()
        self.console.setReadOnly(True)
        io_layout.addWidget(self.console)
        input_row = QHBoxLayout()
        self.console_input = QLineEdit()
        self.console_input.setMaxLength(1)
        self.console_input.setPlaceholderText("Console input")
        self.console_input.returnPressed.connect(self.send_input)
        input_row.addWidget(self.console_input)
        self.send_button = QPushButton("Send")
        self.send_button.clicked.connect(self.send_input)
        input_row.addWidget(self.send_button)
        io_layout.addLayout(input_row)
        self.info_log = QTextEdit()
        self.info_log.setReadOnly(True)
        io_layout.addWidget(self.info_log)
        left_vertical_splitter.addWidget(io_group)

        left_vertical_splitter.setStretchFactor(0, 3)
        left_vertical_splitter.setStretchFactor(1, 1)

        # Right side: registers beside the memory grid
        reg_mem_splitter = QSplitter(Qt.Orientation.Horizontal)
        main_splitter.addWidget(reg_mem_splitter)

        reg_group = QGroupBox("Registers")
        reg_layout = QVBoxLayout(reg_group)
        self.reg_view = QTableView()
        self.reg_model = RegisterModel(self.es)
        self.reg_view.setModel(self.reg_model)
        self.reg_view.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        self.reg_view.verticalHeader().hide()
        reg_layout.addWidget(self.reg_view)
        pc_row = QHBoxLayout()
        pc_row.addWidget(QLabel("Set PC"))
        self.pc_spin = QSpinBox()
        self.pc_spin.setRange(0, common.max_address)
        self.pc_spin.valueChanged.connect(self.set_pc)
        pc_row.addWidget(self.pc_spin)
        reg_layout.addLayout(pc_row)
        reg_mem_splitter.addWidget(reg_group)

        mem_group = QGroupBox("Memory")
        mem_layout = QVBoxLayout(mem_group)
        self.mem_view = QTableView()
        self.mem_model = MemoryModel(self.es)
        self.mem_view.setModel(self.mem_model)
        self.mem_view.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeToContents)
        mem_layout.addWidget(self.mem_view)
        mem_layout.addWidget(QLabel("Hover on any cell to see details."))
        reg_mem_splitter.addWidget(mem_group)

        reg_mem_splitter.setStretchFactor(0, 1)
        reg_mem_splitter.setStretchFactor(1, 3)
        main_splitter.setStretchFactor(0, 1)
        main_splitter.setStretchFactor(1, 2)

        self.create_toolbar()
        self.create_menus()

        self.timer = QTimer(self)
        self.timer.setInterval(tick_interval_ms)
        self.timer.timeout.connect(self.tick)
        self.timer.start()

        self.update_views()

    # ---------------------------------------------------------------------
    # Toolbar and menus
    # ---------------------------------------------------------------------

    def create_toolbar(self):
        self.toolbar = QToolBar("Main Toolbar")
        self.addToolBar(self.toolbar)

        self.run_action = QAction(QIcon.fromTheme("media-playback-start"), "Execute", self)
        self.run_action.triggered.connect(self.toggle_execution)
        self.toolbar.addAction(self.run_action)

        self.step_action = QAction(QIcon.fromTheme("media-skip-forward"), "Step", self)
        self.step_action.triggered.connect(self.step_code)
        self.toolbar.addAction(self.step_action)

        self.reset_action = QAction(QIcon.fromTheme("view-refresh"), "Reset", self)
        self.reset_action.triggered.connect(self.reset_emulator)
        self.toolbar.addAction(self.reset_action)

        self.speed_button = QToolButton()
        self.speed_button.setPopupMode(QToolButton.ToolButtonPopupMode.InstantPopup)
        speed_menu = QMenu(self.speed_button)
        speed_group = QActionGroup(self)
        for hz in common.clock_speeds:
            action = QAction(common.show_clock_speed(hz), self, checkable=True)
            action.setChecked(hz == self.es.clock_speed)
            action.triggered.connect(lambda checked=False, hz=hz: self.set_clock_speed(hz))
            speed_group.addAction(action)
            speed_menu.addAction(action)
        self.speed_button.setMenu(speed_menu)
        self.toolbar.addWidget(self.speed_button)

    def create_menus(self):
        file_menu = self.menuBar().addMenu("&File")
        for label, icon, handler in [
                ("Open...", "document-open", self.open_file),
                ("Save", "document-save", self.save_file),
                ("Save As...", "document-save-as", self.save_file_as),
                ("Export state...", None, self.export_state),
                ("Import state...", None, self.import_state)]:
            action = QAction(QIcon.fromTheme(icon), label, self) if icon else QAction(label, self)
            action.triggered.connect(handler)
            file_menu.addAction(action)

        view_menu = self.menuBar().addMenu("&View")
        self.hex_action = QAction("Show values in hexadecimal", self, checkable=True)
        self.hex_action.setChecked(self.es.value_as_hex)
        self.hex_action.toggled.connect(self.set_value_as_hex)
        view_menu.addAction(self.hex_action)
        self.highlight_action = QAction("Highlight PC location", self, checkable=True)
        self.highlight_action.setChecked(self.es.highlight_pc_location)
        self.highlight_action.toggled.connect(self.set_highlight_pc)
        view_menu.addAction(self.highlight_action)
        color_action = QAction("PC highlight color...", self)
        color_action.triggered.connect(self.choose_highlight_color)
        view_menu.addAction(color_action)
        self.fullscreen_action = QAction(QIcon.fromTheme("view-fullscreen"), "Fullscreen", self)
        self.fullscreen_action.triggered.connect(self.toggle_fullscreen)
        view_menu.addAction(self.fullscreen_action)

    # ---------------------------------------------------------------------
    # Views
    # ---------------------------------------------------------------------

    def update_views(self):
        es = self.es
        self.reg_model.update()
        self.mem_model.update()
        if self.console.toPlainText() != es.output:
            self.console.setPlainText(es.output)
        waiting = state.awaiting_input(es.execution_state)
        self.console_input.setEnabled(waiting)
        self.send_button.setEnabled(waiting)
        running = es.execution_state != state.Stopped
        self.run_action.setText("Terminate" if running else "Execute")
        self.run_action.setIcon(QIcon.fromTheme(
            "media-playback-stop" if running else "media-playback-start"))
        self.speed_button.setText(f"Clock: {common.show_clock_speed(es.clock_speed)}")
        self.pc_spin.blockSignals(True)
        self.pc_spin.setValue(min(es.pc, common.max_address))
        self.pc_spin.blockSignals(False)
        self.statusBar().showMessage(es.execution_state)

    def show_events(self, events):
        for info in events:
            if info.stops:
                self.info_log.append(f"{info.title}: {info.message()}")
                if info.abnormal:
                    QMessageBox.warning(self, info.summary, info.message())
            else:
                self.statusBar().showMessage(info.message())

    # ---------------------------------------------------------------------
    # Running
    # ---------------------------------------------------------------------

    def tick(self):
        events = self.runner.tick()
        if events or self.es.execution_state != state.Stopped:
            self.update_views()
            self.show_events(events)

    def assemble_and_load(self):
        self.es.source_code = self.code_editor.toPlainText()
        self.es.program_load_location = self.load_location.value()
        try:
            program = loader.assemble_and_load(self.es)
        except assembler.AssemblerError as e:
            self.info_log.append(f"Assembler error: {e}")
            common.mode.errlog(f"Assembler error: {e}")
        else:
            self.info_log.append(f"Loaded {len(program)} words at "
                                 f"{arith.show_address(self.es.program_load_location)}")
        self.update_views()

    def toggle_execution(self):
        if self.es.execution_state == state.Stopped:
            emulator.set_run_state(self.es, state.Executing)
        else:
            emulator.set_run_state(self.es, state.Stopped)
        self.update_views()

    def step_code(self):
        events = emulator.step(self.es)
        self.update_views()
        self.show_events(events)

    def send_input(self):
        xs = self.console_input.text()
        if not xs:
            return
        try:
            emulator.supply_input(self.es, xs)
        except emulator.InputNotExpected as e:
            common.mode.errlog(str(e))
        self.console_input.clear()
        self.update_views()

    def reset_emulator(self):
        emulator.proc_reset(self.es)
        self.info_log.clear()
        self.info_log.append("Emulator reset.")
        self.update_views()

    def set_pc(self, a):
        self.es.pc = a
        self.update_views()

    def set_clock_speed(self, hz):
        self.es.clock_speed = hz
        self.update_views()

    def set_value_as_hex(self, b):
        self.es.value_as_hex = b
        self.update_views()

    def set_highlight_pc(self, b):
        self.es.highlight_pc_location = b
        self.update_views()

    def choose_highlight_color(self):
        color = QColorDialog.getColor(QColor(*self.es.pc_highlight_color), self)
        if color.isValid():
            self.es.pc_highlight_color = [color.red(), color.green(), color.blue()]
            self.update_views()

    # ---------------------------------------------------------------------
    # Files
    # ---------------------------------------------------------------------

    def open_file(self):
        file_name, _ = QFileDialog.getOpenFileName(self, "Open Assembly File", ".", "Assembly Files (*.asm *.txt);;All Files (*)")
        if file_name:
            try:
                with open(file_name, 'r', encoding='utf-8') as f:
                    self.code_editor.setPlainText(f.read())
                self.current_file = file_name
                self.setWindowTitle(f"{common.APP_TITLE} - {file_name}")
                self.info_log.append(f"File loaded: {self.current_file}")
            except OSError as e:
                self.info_log.append(f"Error opening file: {e}")

    def save_file(self):
        if self.current_file:
            try:
                with open(self.current_file, 'w', encoding='utf-8') as f:
                    f.write(self.code_editor.toPlainText())
                self.info_log.append(f"File saved: {self.current_file}")
            except OSError as e:
                self.info_log.append(f"Error saving file: {e}")
        else:
            self.save_file_as()

    def save_file_as(self):
        file_name, _ = QFileDialog.getSaveFileName(self, "Save Assembly File As", ".", "Assembly Files (*.asm *.txt);;All Files (*)")
        if file_name:
            self.current_file = file_name
            self.setWindowTitle(f"{common.APP_TITLE} - {file_name}")
            self.save_file()

    def export_state(self):
        file_name, _ = QFileDialog.getSaveFileName(self, "Export State", ".", "State Files (*.json);;All Files (*)")
        if file_name:
            self.es.source_code = self.code_editor.toPlainText()
            self.es.program_load_location = self.load_location.value()
            try:
                with open(file_name, 'w', encoding='utf-8') as f:
                    f.write(self.es.to_json(indent=2))
                self.info_log.append(f"State exported: {file_name}")
            except OSError as e:
                self.info_log.append(f"Error exporting state: {e}")

    def import_state(self):
        file_name, _ = QFileDialog.getOpenFileName(self, "Import State", ".", "State Files (*.json);;All Files (*)")
        if not file_name:
            return
        try:
            with open(file_name, 'r', encoding='utf-8') as f:
                es = state.InterpreterState.from_json(f.read())
        except (OSError, state.StateFormatError) as e:
            self.info_log.append(f"Error importing state: {e}")
            return
        self.es = es
        self.runner = emulator.Runner(es)
        self.reg_model.es = es
        self.mem_model.es = es
        self.code_editor.setPlainText(es.source_code)
        self.load_location.setValue(es.program_load_location)
        self.hex_action.setChecked(es.value_as_hex)
        self.highlight_action.setChecked(es.highlight_pc_location)
        self.info_log.append(f"State imported: {file_name}")
        self.update_views()

    def toggle_fullscreen(self):
        if self.isFullScreen():
            self.showNormal()
        else:
            self.showFullScreen()

style_sheet = """
    QMainWindow {
        background-color: #1a1a1a;
        color: #e0e0e0;
    }
    QTextEdit, QLineEdit, QSpinBox {
        background-color: #2a2a2a;
        color: #00ff00;
        border: 1px solid #007acc;
        padding: 5px;
        font-family: "Consolas", "Monaco", "Courier New", monospace;
        font-size: 10pt;
    }
    QLabel {
        color: #e0e0e0;
    }
    QPushButton {
        background-color: #007acc;
        color: #ffffff;
        border: none;
        padding: 8px 16px;
        border-radius: 4px;
        font-weight: bold;
    }
    QPushButton:hover {
        background-color: #005f99;
    }
    QPushButton:disabled {
        background-color: #3a3a3a;
        color: #888888;
    }
    QTableView {
        background-color: #2a2a2a;
        color: #e0e0e0;
        border: 1px solid #007acc;
        gridline-color: #444444;
        selection-background-color: #007acc;
        selection-color: #ffffff;
    }
    QHeaderView::section {
        background-color: #3a3a3a;
        color: #e0e0e0;
        padding: 4px;
        border: 1px solid #007acc;
        font-weight: bold;
    }
    QGroupBox {
        background-color: #1a1a1a;
        color: #e0e0e0;
        border: 1px solid #007acc;
        border-radius: 4px;
        margin-top: 10px;
    }
    QGroupBox::title {
        subcontrol-origin: margin;
        subcontrol-position: top left;
        padding: 0 3px;
        color: #00ff00;
        font-weight: bold;
    }
    QMenuBar, QMenu, QToolBar, QStatusBar {
        background-color: #2a2a2a;
        color: #e0e0e0;
    }
    QMenu::item:selected, QMenuBar::item:selected {
        background-color: #007acc;
    }
    QToolButton {
        background-color: transparent;
        border: none;
        padding: 5px;
        color: #e0e0e0;
    }
    QToolButton:hover {
        background-color: #005f99;
        border-radius: 3px;
    }
"""

def start_gui(file_path=None):
    app = QApplication.instance() or QApplication(sys.argv)
    app.setStyleSheet(style_sheet)
    es = state.InterpreterState()
    if file_path:
        with open(file_path, 'r', encoding='utf-8') as f:
            es.source_code = f.read()
    window = MainWindow(es)
    if file_path:
        window.current_file = file_path
        window.setWindowTitle(f"{common.APP_TITLE} - {file_path}")
    window.show()
    return app.exec()
