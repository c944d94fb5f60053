from dataclasses import dataclass, field
from typing import List, Optional

# === Настройки ===

DEFAULT_K = 20
SLIDER_MAX = 100

# Список значений k для пакетного режима
DEFAULT_K_LIST = list(range(1, 11)) + list(range(20, 101, 10))

JPEG_QUALITY = 90
OUTPUT_DIR_TEMPLATE = "compressed_{basename}"

DEFAULT_METHOD = "lapack"
JACOBI_MAX_SWEEPS = 60
# относительный порог ортогональности столбцов
JACOBI_TOL = 1e-12
MAX_WORKERS = 2


@dataclass(frozen=True)
class CompressorSettings:
    """Параметры запуска (CLI-флаги переопределяют значения по умолчанию)"""
    k_list: List[int] = field(default_factory=lambda: list(DEFAULT_K_LIST))
    method: str = DEFAULT_METHOD
    quality: int = JPEG_QUALITY
    output_dir: Optional[str] = None
    export_excel: bool = False

    def resolve_output_dir(self, basename):
        return self.output_dir or OUTPUT_DIR_TEMPLATE.format(basename=basename)
