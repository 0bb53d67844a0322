"""
Tkinter front-end for the Excel Column Extractor.

Collects the same options as the command line and runs the batch on a
background thread. Progress lines reach the output pane through a queue that
the Tk event loop polls.
"""

import queue
import threading
from pathlib import Path

from .config.settings import AppConfig, CsvDelimiter, CsvEncoding, get_settings
from .logging_setup import get_logger
from .workflows.batch_extraction_processor import BatchExtractionProcessor

POLL_INTERVAL_MS = 100

logger = get_logger("gui")


def run_batch(config: AppConfig, messages: queue.Queue, **kwargs):
    """Run one batch, sending output lines and a final status to messages

    A ("done", status) message is always queued last, whatever the batch raises.
    """
    try:
        processor = BatchExtractionProcessor(
            config,
            echo=lambda line: messages.put(("out", line)),
            echo_error=lambda line: messages.put(("out", f"[ERROR] {line}")),
            **kwargs,
        )
        processor.run()
    except Exception as e:
        logger.error("gui_extraction_failed", error=str(e), exc_info=True)
        messages.put(("done", f"Error: {e}"))
        return

    stats = processor.stats
    if stats['discovery_error']:
        status = f"Error: {stats['discovery_error']}"
    elif stats['total_files'] == 0:
        status = "No Excel files found in the selected folder."
    else:
        status = (f"Completed: {stats['successful_extractions']} successful, "
                  f"{stats['failed_extractions']} failed")
    messages.put(("done", status))


class ExtractorWindow:
    """Main window: configuration form, output pane and status line"""

    def __init__(self, root):
        import tkinter as tk
        from tkinter import ttk

        self.root = root
        self.messages: "queue.Queue[tuple]" = queue.Queue()
        settings = get_settings()

        root.title("Excel to CSV Column Extractor")
        root.minsize(600, 500)

        form = ttk.LabelFrame(root, text="Configuration", padding=10)
        form.pack(fill="x", padx=15, pady=(15, 5))
        form.columnconfigure(1, weight=1)

        self.folder_var = tk.StringVar()
        self.column_var = tk.StringVar()
        self.delimiter_var = tk.StringVar(value=settings.delimiter.cli_name)
        self.encoding_var = tk.StringVar(value=settings.encoding.cli_name)
        self.merge_var = tk.BooleanVar(value=False)
        self.scramble_var = tk.BooleanVar(value=False)

        ttk.Label(form, text="Folder:").grid(row=0, column=0, sticky="w", pady=3)
        ttk.Entry(form, textvariable=self.folder_var).grid(row=0, column=1, sticky="ew", padx=5)
        self.browse_button = ttk.Button(form, text="Browse...", command=self.browse_folder)
        self.browse_button.grid(row=0, column=2)

        ttk.Label(form, text="Column Name:").grid(row=1, column=0, sticky="w", pady=3)
        ttk.Entry(form, textvariable=self.column_var).grid(row=1, column=1, columnspan=2, sticky="ew", padx=5)

        ttk.Label(form, text="Delimiter:").grid(row=2, column=0, sticky="w", pady=3)
        ttk.Combobox(form, textvariable=self.delimiter_var, values=CsvDelimiter.names(),
                     state="readonly").grid(row=2, column=1, columnspan=2, sticky="ew", padx=5)

        ttk.Label(form, text="Encoding:").grid(row=3, column=0, sticky="w", pady=3)
        ttk.Combobox(form, textvariable=self.encoding_var, values=CsvEncoding.names(),
                     state="readonly").grid(row=3, column=1, columnspan=2, sticky="ew", padx=5)

        ttk.Checkbutton(form, text="Merge all results into a single CSV file",
                        variable=self.merge_var).grid(row=4, column=1, columnspan=2, sticky="w")
        ttk.Checkbutton(form, text="Scramble output text (Debug)",
                        variable=self.scramble_var).grid(row=5, column=1, columnspan=2, sticky="w")

        self.extract_button = ttk.Button(form, text="Extract Column", command=self.start_extraction)
        self.extract_button.grid(row=6, column=0, columnspan=3, pady=(10, 0))

        output = ttk.LabelFrame(root, text="Output", padding=5)
        output.pack(fill="both", expand=True, padx=15, pady=5)
        self.output_text = tk.Text(output, state="disabled", wrap="word", font=("Courier", 10))
        scrollbar = ttk.Scrollbar(output, command=self.output_text.yview)
        self.output_text.configure(yscrollcommand=scrollbar.set)
        scrollbar.pack(side="right", fill="y")
        self.output_text.pack(fill="both", expand=True)

        self.status_var = tk.StringVar(value="Select a folder and enter column name to begin")
        ttk.Label(root, textvariable=self.status_var).pack(fill="x", padx=15, pady=(0, 10))

    def browse_folder(self):
        from tkinter import filedialog

        initial = self.folder_var.get().strip()
        chosen = filedialog.askdirectory(
            title="Select Folder Containing Excel Files",
            initialdir=initial if initial and Path(initial).is_dir() else None,
        )
        if chosen:
            self.folder_var.set(chosen)

    def start_extraction(self):
        from tkinter import messagebox

        folder = self.folder_var.get().strip()
        column = self.column_var.get().strip()
        if not folder:
            messagebox.showerror("Input Error", "Please select a folder containing Excel files.")
            return
        if not column:
            messagebox.showerror("Input Error", "Please enter a column name to extract.")
            return
        if not Path(folder).is_dir():
            messagebox.showerror("Input Error", "The specified path is not a valid directory.")
            return

        config = AppConfig(
            column_name=column,
            folder_path=Path(folder),
            merge_output=self.merge_var.get(),
            delimiter=CsvDelimiter.from_name(self.delimiter_var.get()),
            encoding=CsvEncoding.from_name(self.encoding_var.get()),
            scramble=self.scramble_var.get(),
        )

        self.set_inputs_enabled(False)
        self.clear_output()
        self.status_var.set(f"Extracting column '{column}' from Excel files...")

        threading.Thread(target=run_batch, args=(config, self.messages), daemon=True).start()
        self.root.after(POLL_INTERVAL_MS, self.poll_messages)

    def poll_messages(self):
        while True:
            try:
                kind, text = self.messages.get_nowait()
            except queue.Empty:
                break
            if kind == "done":
                self.status_var.set(text)
                self.set_inputs_enabled(True)
                return
            self.append_output(text)
        self.root.after(POLL_INTERVAL_MS, self.poll_messages)

    def append_output(self, text: str):
        self.output_text.configure(state="normal")
        self.output_text.insert("end", text + "\n")
        self.output_text.see("end")
        self.output_text.configure(state="disabled")

    def clear_output(self):
        self.output_text.configure(state="normal")
        self.output_text.delete("1.0", "end")
        self.output_text.configure(state="disabled")

    def set_inputs_enabled(self, enabled: bool):
        state = "normal" if enabled else "disabled"
        self.extract_button.configure(state=state)
        self.browse_button.configure(state=state)


def launch():
    """Open the window and run the Tk event loop"""
    import tkinter as tk

    get_settings()  # a bad .env fails here, before any window opens
    root = tk.Tk()
    ExtractorWindow(root)
    root.mainloop()
