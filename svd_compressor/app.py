import logging
import os
import queue
from tkinter import HORIZONTAL, Button, Frame, Label, Scale, Tk, filedialog, messagebox, ttk

from PIL import ImageTk

from .codec import CompressionStats, encode_jpeg, load_raster, save_raster, to_pil
from .config import DEFAULT_K, JPEG_QUALITY, OUTPUT_DIR_TEMPLATE, SLIDER_MAX
from .export import decomposition_sheets, save_matrices_to_excel
from .session import CompressionSession

logger = logging.getLogger(__name__)

PREVIEW_SIZE = (300, 300)
POLL_MS = 50

HELP_TEXT = (
    "📘 Инструкция по использованию:\n\n"
    "1️⃣ Нажмите «Открыть файл» и выберите изображение (.jpg, .png, .bmp, .tif).\n"
    "2️⃣ Двигайте ползунок k — сжатая версия пересчитывается автоматически.\n"
    "3️⃣ Нажмите «Сохранить», чтобы записать результат.\n\n"
    "📂 В папку compressed_<имя> сохраняются:\n"
    "   - исходник, сжатый файл и Excel с матрицами U, S, Vt.\n\n"
    "💡 Сжимается только яркость (ч/б результат).\n"
    "💡 Чем меньше k, тем сильнее сжатие (но ниже точность)."
)


# === Класс приложения ===

class SVDCompressorApp:
    def __init__(self, master):
        self.master = master
        master.title("SVD Compressor")
        master.geometry("760x640")

        self.file_path = None
        self.original_size = 0
        self._results = queue.Queue()
        self.session = CompressionSession(
            on_result=lambda r: self._results.put(("ok", r)),
            on_error=lambda g, e: self._results.put(("error", e)),
        )

        self.tabs = ttk.Notebook(master)
        self.main_tab = Frame(self.tabs)
        self.help_tab = Frame(self.tabs)

        self.tabs.add(self.main_tab, text="Главная")
        self.tabs.add(self.help_tab, text="Как пользоваться")
        self.tabs.pack(expand=1, fill="both")

        self.label = Label(self.main_tab, text="Выберите изображение", font=("Arial", 14))
        self.label.pack(pady=10)

        self.load_button = Button(self.main_tab, text="Открыть файл", command=self.load_file)
        self.load_button.pack(pady=5)

        self.k_scale = Scale(
            self.main_tab, from_=1, to=SLIDER_MAX, orient=HORIZONTAL,
            label="Количество компонент (k)", command=self.on_k_changed,
        )
        self.k_scale.set(DEFAULT_K)
        self.k_scale.pack(pady=10, fill='x', padx=40)

        previews = Frame(self.main_tab)
        previews.pack(pady=10)
        self.original_label = Label(previews, text="Оригинал")
        self.original_label.grid(row=0, column=0, padx=10)
        self.compressed_label = Label(previews, text="Сжатое")
        self.compressed_label.grid(row=0, column=1, padx=10)

        self.stats_label = Label(self.main_tab, font=("Courier", 11))
        self.stats_label.pack(pady=5)

        self.save_button = Button(self.main_tab, text="Сохранить", command=self.save)
        self.save_button.pack(pady=5)

        self.help_label = Label(self.help_tab, text=HELP_TEXT, justify="left", font=("Arial", 11), wraplength=700)
        self.help_label.pack(padx=10, pady=10)

        master.protocol("WM_DELETE_WINDOW", self.close)
        master.after(POLL_MS, self._poll)

    def load_file(self, path=None):
        path = path or filedialog.askopenfilename(
            title="Выберите файл",
            filetypes=[("Изображения", "*.jpg *.jpeg *.png *.bmp *.tif *.tiff")],
        )
        if not path:
            return

        try:
            raster = load_raster(path)
        except (OSError, ValueError) as e:
            messagebox.showerror("Ошибка", f"Не удалось открыть изображение:\n{e}")
            return

        self.file_path = path
        self.original_size = os.path.getsize(path)
        self.session.set_source(raster)
        logger.info("Загружено %s (%dx%d)", path, raster.width, raster.height)

        self._set_preview(self.original_label, to_pil(raster))
        self.compressed_label.configure(image='', text="Сжатие…")
        self.label.config(text=f"Загружено изображение: {os.path.basename(path)}")

        max_rank = min(raster.width, raster.height)
        self.k_scale.config(to=min(max_rank, SLIDER_MAX))
        self.k_scale.set(min(DEFAULT_K, max_rank))
        self.on_k_changed()

    def on_k_changed(self, _value=None):
        if self.session.source is None:
            return
        self.session.submit(int(self.k_scale.get()))

    def _poll(self):
        while True:
            try:
                status, payload = self._results.get_nowait()
            except queue.Empty:
                break
            if status == "ok":
                self._show_result(payload)
            else:
                # предыдущий результат остаётся на экране
                messagebox.showerror("Ошибка", f"Сжатие не удалось:\n{payload}")
        self.master.after(POLL_MS, self._poll)

    def _show_result(self, result):
        data = encode_jpeg(result.raster, quality=JPEG_QUALITY)
        self._set_preview(self.compressed_label, to_pil(result.raster))
        stats = CompressionStats(original=self.original_size, compressed=len(data))
        self.stats_label.config(text=f"k = {result.k_effective}   {stats.summary()}")

    def _set_preview(self, label, img):
        img.thumbnail(PREVIEW_SIZE)
        img_tk = ImageTk.PhotoImage(img)
        label.configure(image=img_tk, text='')
        label.image = img_tk

    def save(self):
        result = self.session.latest
        if not self.file_path or result is None:
            messagebox.showwarning("Ошибка", "Сначала выберите файл и дождитесь сжатия.")
            return

        k = result.k_effective
        basename = os.path.splitext(os.path.basename(self.file_path))[0]
        output_dir = OUTPUT_DIR_TEMPLATE.format(basename=basename)
        os.makedirs(output_dir, exist_ok=True)

        original_path = save_raster(self.session.source, os.path.join(output_dir, f"{basename}_original.jpg"))
        compressed_path = os.path.join(output_dir, f"{basename}_compressed_k={k}.jpg")
        with open(compressed_path, "wb") as f:
            f.write(encode_jpeg(result.raster, quality=JPEG_QUALITY))

        decomp, _ = self.session.pipeline.decompose(self.session.source)
        excel_path = os.path.join(output_dir, f"{basename}_SVD_matrices.xlsx")
        save_matrices_to_excel(decomposition_sheets(decomp, k), excel_path)

        messagebox.showinfo(
            "Готово",
            f"🖼️ Изображение обработано!\n\n"
            f"✅ Оригинал сохранён: {original_path}\n"
            f"✅ Сжатое изображение сохранено: {compressed_path}\n"
            f"✅ Матрицы сохранены в Excel: {excel_path}"
        )

    def close(self):
        self.session.close(wait=False)
        self.master.destroy()


def run_app(path=None):
    root = Tk()
    app = SVDCompressorApp(root)
    if path:
        app.load_file(path)
    root.mainloop()


# === Запуск ===
if __name__ == "__main__":
    run_app()
