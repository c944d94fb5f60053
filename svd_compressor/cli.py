"""
SVD Compressor — командная строка

Usage:
    python -m svd_compressor compress Cat.jpg -k 5 20 50 --excel
    python -m svd_compressor gui [Cat.jpg]
"""

import argparse
import logging
import os
import sys

from .codec import CompressionStats, encode_jpeg, load_raster, save_raster
from .config import DEFAULT_METHOD, JPEG_QUALITY, CompressorSettings
from .errors import CompressionError
from .export import decomposition_sheets, save_matrices_to_excel
from .pipeline import CompressionPipeline
from .svd import METHODS

logger = logging.getLogger(__name__)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="svd_compressor",
        description="Сжатие изображений усечённым SVD матрицы яркости",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Подробный лог (DEBUG)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("compress", help="Сжать изображение для списка k")
    p.add_argument("image", help="INPUT: файл изображения")
    p.add_argument("-k", type=int, nargs="+", dest="k_list", help="Значения k (по умолчанию 1..10, 20..100)")
    p.add_argument("-o", "--output-dir", help="OUTPUT: папка (по умолчанию compressed_<имя>)")
    p.add_argument("--method", choices=sorted(METHODS), default=DEFAULT_METHOD,
                   help="Метод SVD (jacobi — для небольших изображений)")
    p.add_argument("--quality", type=int, default=JPEG_QUALITY, help="Качество JPEG")
    p.add_argument("--excel", action="store_true", help="Сохранить матрицы U, S, Vt в Excel")

    g = sub.add_parser("gui", help="Запустить оконное приложение")
    g.add_argument("image", nargs="?", help="Открыть изображение сразу")
    return parser


def settings_from_args(args):
    kwargs = dict(method=args.method, quality=args.quality,
                  output_dir=args.output_dir, export_excel=args.excel)
    if args.k_list:
        kwargs["k_list"] = list(args.k_list)
    return CompressorSettings(**kwargs)


def compress_file(path, settings):
    """Пакетное сжатие одного файла; возвращает {k: путь к результату}"""
    basename = os.path.splitext(os.path.basename(path))[0]
    output_dir = settings.resolve_output_dir(basename)
    os.makedirs(output_dir, exist_ok=True)

    source = load_raster(path)
    original_size = os.path.getsize(path)
    save_raster(source, os.path.join(output_dir, f"{basename}_original.jpg"), quality=settings.quality)

    pipeline = CompressionPipeline(method=settings.method)
    outputs = {}
    for k in settings.k_list:
        result = pipeline.run(source, k)
        data = encode_jpeg(result.raster, quality=settings.quality)

        out_path = os.path.join(output_dir, f"{basename}_compressed_k={k}.jpg")
        with open(out_path, "wb") as f:
            f.write(data)
        outputs[k] = out_path

        stats = CompressionStats(original=original_size, compressed=len(data))
        print(f"k={k} (k_eff={result.k_effective}): {stats.summary()}")

        if settings.export_excel:
            decomp, _ = pipeline.decompose(source)
            excel_path = os.path.join(output_dir, f"{basename}_SVD_matrices_k={k}.xlsx")
            save_matrices_to_excel(decomposition_sheets(decomp, result.k_effective), excel_path)

    logger.info("Результаты сохранены в %s", output_dir)
    return outputs


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )

    if args.image and not os.path.exists(args.image):
        logger.error("Файл не найден: %s", args.image)
        return 1

    if args.command == "gui":
        from .app import run_app
        run_app(args.image)
        return 0

    try:
        compress_file(args.image, settings_from_args(args))
    except CompressionError as e:
        logger.error("Ошибка сжатия: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
