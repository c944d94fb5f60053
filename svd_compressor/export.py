import numpy as np
from openpyxl import Workbook

from .reconstruct import truncate

# Excel ограничивает имя листа 31 символом
SHEET_NAME_LIMIT = 31


def decomposition_sheets(decomp, k):
    """Полные и усечённые матрицы разложения для выгрузки"""
    U_k, S_k, Vt_k = truncate(decomp, k)
    return {
        "U_full": decomp.U,
        "S_full": np.diag(decomp.S),
        "Vt_full": decomp.Vt,
        f"U_k={k}": U_k,
        f"S_k={k}": S_k,
        f"Vt_k={k}": Vt_k,
    }


def save_matrices_to_excel(matrices, filename):
    """Сохраняет словарь {имя: матрица} в Excel файл, по листу на матрицу"""
    wb = Workbook()
    default = wb.active
    for name, matrix in matrices.items():
        ws = wb.create_sheet(title=name[:SHEET_NAME_LIMIT])
        for row in np.atleast_2d(np.asarray(matrix, dtype=float)):
            ws.append(row.tolist())
    wb.remove(default)
    wb.save(filename)
    return filename
