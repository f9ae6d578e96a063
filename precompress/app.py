from __future__ import annotations

import logging
import os
from pathlib import Path

from PySide6.QtCore import QObject, Qt, QThread, Signal, QSettings
from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QFormLayout,
    QGridLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QPushButton,
    QPlainTextEdit,
    QProgressBar,
    QSpinBox,
    QVBoxLayout,
    QWidget,
    QFileDialog,
    QFrame,
)

from .compress import PrecompressError, compress_file, ensure_available
from .models import (
    DEFAULT_MIN_SIZE,
    DEFAULT_SUFFIXES,
    Algorithm,
    CompressResult,
    PrecompressOptions,
    is_included,
    iter_files,
    iter_included_files,
    split_list,
)


class CompressWorker(QObject):
    progress = Signal(int, str, list)
    finished = Signal(list)

    def __init__(self, files: list[Path], options: PrecompressOptions) -> None:
        super().__init__()
        self.files = files
        self.options = options

    def run(self) -> None:
        results = []
        total = len(self.files)
        try:
            for index, path in enumerate(self.files, start=1):
                file_results = compress_file(path, self.options)
                results.extend(file_results)
                percent = int(index * 100 / total)
                self.progress.emit(percent, path.name, file_results)
        finally:
            self.finished.emit(results)


class LogEmitter(QObject):
    message = Signal(str)


class QtLogHandler(logging.Handler):
    """Forward log records to the window from any thread."""

    def __init__(self, emitter: LogEmitter) -> None:
        super().__init__(level=logging.INFO)
        self.emitter = emitter
        self.setFormatter(logging.Formatter("%(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        self.emitter.message.emit(self.format(record))


class DropArea(QFrame):
    dropped = Signal(list)

    def __init__(self) -> None:
        super().__init__()
        self.setAcceptDrops(True)
        self.setFrameShape(QFrame.NoFrame)
        self.setMinimumHeight(110)
        self.setStyleSheet(
            "QFrame { border: 1px solid #d0d0d0; border-radius: 8px; background: #fafafa; }"
        )
        layout = QVBoxLayout()
        label = QLabel("拖拽文件/文件夹到此处立即预压缩（输出同目录）")
        label.setAlignment(Qt.AlignCenter)
        layout.addWidget(label)
        self.setLayout(layout)

    def dragEnterEvent(self, event) -> None:
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event) -> None:
        urls = event.mimeData().urls()
        paths = [Path(url.toLocalFile()) for url in urls if url.toLocalFile()]
        if paths:
            self.dropped.emit(paths)


class MainWindow(QMainWindow):

    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle("Precompress")
        self.resize(900, 600)
        self.thread: QThread | None = None
        self.worker: CompressWorker | None = None
        self.settings = QSettings("Precompress", "Precompress")
        self.drop_area = DropArea()
        self.input_line = QLineEdit()
        self.output_line = QLineEdit()
        self.suffixes_line = QLineEdit()
        self.algorithm_gzip = QCheckBox("gzip (.gz)")
        self.algorithm_brotli = QCheckBox("brotli (.br)")
        self.min_size_spin = QSpinBox()
        self.start_button = QPushButton("开始预压缩")
        self.progress_bar = QProgressBar()
        self.log_area = QPlainTextEdit()
        self.log_emitter = LogEmitter()
        self.log_handler = QtLogHandler(self.log_emitter)
        self.setup_ui()

    def setup_ui(self) -> None:
        central = QWidget()
        layout = QVBoxLayout()
        layout.addWidget(self.drop_area)
        layout.addWidget(self.build_path_group())
        layout.addWidget(self.build_options_group())
        layout.addWidget(self.build_action_group())
        layout.addWidget(self.progress_bar)
        layout.addWidget(self.log_area)
        central.setLayout(layout)
        self.setCentralWidget(central)
        self.log_area.setReadOnly(True)
        self.progress_bar.setValue(0)
        self.min_size_spin.setRange(0, 1024 * 1024 * 1024)
        self.min_size_spin.setValue(DEFAULT_MIN_SIZE)
        self.min_size_spin.setSuffix(" B")
        self.algorithm_gzip.setChecked(True)
        self.algorithm_brotli.setChecked(True)
        self.load_settings()
        self.start_button.clicked.connect(self.on_start)
        self.drop_area.dropped.connect(self.on_drop_paths)
        self.log_emitter.message.connect(self.append_log)
        logging.getLogger("precompress").addHandler(self.log_handler)
        logging.getLogger("precompress").setLevel(logging.INFO)
        exit_action = QAction("退出", self)
        exit_action.triggered.connect(self.close)
        self.menuBar().addAction(exit_action)

    def build_path_group(self) -> QGroupBox:
        group = QGroupBox("路径")
        layout = QGridLayout()
        input_button = QPushButton("选择输入目录")
        output_button = QPushButton("选择输出目录")
        input_button.clicked.connect(self.pick_input_dir)
        output_button.clicked.connect(self.pick_output_dir)
        layout.addWidget(QLabel("输入目录"), 0, 0)
        layout.addWidget(self.input_line, 0, 1)
        layout.addWidget(input_button, 0, 2)
        layout.addWidget(QLabel("输出目录"), 1, 0)
        layout.addWidget(self.output_line, 1, 1)
        layout.addWidget(output_button, 1, 2)
        group.setLayout(layout)
        return group

    def build_options_group(self) -> QGroupBox:
        group = QGroupBox("压缩选项")
        layout = QFormLayout()
        algorithm_layout = QHBoxLayout()
        algorithm_layout.addWidget(self.algorithm_gzip)
        algorithm_layout.addWidget(self.algorithm_brotli)
        layout.addRow("算法", algorithm_layout)
        layout.addRow("文件后缀", self.suffixes_line)
        layout.addRow("最小文件大小", self.min_size_spin)
        group.setLayout(layout)
        return group

    def build_action_group(self) -> QWidget:
        group = QWidget()
        layout = QHBoxLayout()
        layout.addWidget(self.start_button)
        group.setLayout(layout)
        return group

    def pick_input_dir(self) -> None:
        path = QFileDialog.getExistingDirectory(self, "选择输入目录")
        if path:
            self.input_line.setText(path)

    def pick_output_dir(self) -> None:
        default_dir = self.output_line.text().strip() or self.settings.value("output_dir", "")
        path = QFileDialog.getExistingDirectory(self, "选择输出目录", default_dir)
        if path:
            self.output_line.setText(path)
            self.settings.setValue("output_dir", path)

    def on_start(self) -> None:
        if self.thread is not None:
            return
        input_text = self.input_line.text().strip()
        if not input_text or not Path(input_text).is_dir():
            self.append_log("请输入有效的输入目录")
            return
        output_text = self.output_line.text().strip()
        options = self.build_options(Path(input_text), Path(output_text) if output_text else None)
        if options is None:
            return
        if not self.check_codecs(options):
            return
        files = list(iter_included_files(options))
        if not files:
            self.append_log("未找到可压缩文件")
            return
        self.settings.setValue("include_suffixes", ",".join(options.include_suffixes))
        self.start_compression(files, options)

    def build_options(self, input_dir: Path, output_dir: Path | None) -> PrecompressOptions | None:
        algorithms = self.get_selected_algorithms()
        if not algorithms:
            self.append_log("请选择至少一种算法")
            return None
        suffixes = split_list(self.suffixes_line.text())
        if not suffixes:
            self.append_log("请输入至少一个文件后缀")
            return None
        return PrecompressOptions(
            input_dir=input_dir,
            output_dir=output_dir or input_dir,
            include_suffixes=suffixes,
            algorithms=algorithms,
            min_size=self.min_size_spin.value(),
        )

    def check_codecs(self, options: PrecompressOptions) -> bool:
        try:
            ensure_available(options.algorithms)
        except PrecompressError as exc:
            self.append_log(str(exc))
            return False
        return True

    def start_compression(self, files: list[Path], options: PrecompressOptions) -> None:
        self.start_button.setEnabled(False)
        self.progress_bar.setValue(0)
        self.log_area.clear()
        names = ", ".join(algorithm.name for algorithm in options.algorithms)
        self.append_log(f"开始预压缩 {len(files)} 个文件（{names}）")
        self.thread = QThread()
        self.worker = CompressWorker(files, options)
        self.worker.moveToThread(self.thread)
        self.thread.started.connect(self.worker.run)
        self.worker.progress.connect(self.on_progress)
        self.worker.finished.connect(self.on_finished)
        self.worker.finished.connect(self.thread.quit)
        self.thread.finished.connect(self.on_thread_finished)
        self.thread.start()

    def get_selected_algorithms(self) -> tuple[Algorithm, ...]:
        algorithms = []
        if self.algorithm_gzip.isChecked():
            algorithms.append(Algorithm.GZIP)
        if self.algorithm_brotli.isChecked():
            algorithms.append(Algorithm.BROTLI)
        return tuple(algorithms)

    def on_progress(self, percent: int, name: str, results: list[CompressResult]) -> None:
        self.progress_bar.setValue(percent)

    def on_finished(self, results: list[CompressResult]) -> None:
        kept = [result for result in results if result.kept]
        self.append_log(f"完成：生成 {len(kept)} 个压缩文件")
        self.progress_bar.setValue(100)

    def on_thread_finished(self) -> None:
        self.start_button.setEnabled(True)
        self.thread = None
        self.worker = None

    def append_log(self, text: str) -> None:
        self.log_area.appendPlainText(text)

    def on_drop_paths(self, paths: list[Path]) -> None:
        if self.thread is not None:
            return
        root = self.get_input_dir(paths)
        options = self.build_options(root, root)
        if options is None or not self.check_codecs(options):
            return
        files: list[Path] = []
        for path in paths:
            if path.is_dir():
                files.extend(item for item in iter_files(path) if is_included(item, options))
            elif is_included(path, options):
                files.append(path)
        unique_files = list(dict.fromkeys(files))
        if not unique_files:
            self.append_log("未找到可压缩文件")
            return
        self.input_line.setText("")
        self.output_line.setText("")
        self.start_compression(unique_files, options)

    def get_input_dir(self, paths: list[Path]) -> Path:
        common = os.path.commonpath([str(path) for path in paths])
        common_path = Path(common)
        if common_path.exists() and common_path.is_file():
            return common_path.parent
        return common_path

    def load_settings(self) -> None:
        output_dir = self.settings.value("output_dir", "")
        if output_dir:
            self.output_line.setText(output_dir)
        suffixes = self.settings.value("include_suffixes", "")
        self.suffixes_line.setText(suffixes or ",".join(DEFAULT_SUFFIXES))

    def closeEvent(self, event) -> None:
        logging.getLogger("precompress").removeHandler(self.log_handler)
        super().closeEvent(event)


def main() -> None:
    app = QApplication([])
    window = MainWindow()
    window.show()
    app.exec()
