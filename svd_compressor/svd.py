"""
Сингулярное разложение A = U @ diag(S) @ Vt.

Два метода:
- "lapack": numpy.linalg.svd (как в исходной программе)
- "jacobi": односторонний метод Якоби (Hestenes) на numpy

Оба возвращают сокращённую форму: U (M x r), S (r), Vt (r x N), r = min(M, N),
S по убыванию, знаки зафиксированы: наибольший по модулю элемент
каждого столбца U неотрицателен.
"""

import logging
from dataclasses import dataclass

import numpy as np

from .config import JACOBI_MAX_SWEEPS, JACOBI_TOL
from .errors import InvalidDimensions, NumericalFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decomposition:
    U: np.ndarray
    S: np.ndarray
    Vt: np.ndarray

    @property
    def shape(self):
        return self.U.shape[0], self.Vt.shape[1]

    @property
    def rank(self):
        """Максимально возможный ранг min(M, N)"""
        return len(self.S)

    @property
    def V(self):
        return self.Vt.T

    def freeze(self):
        """Запрещает запись в массивы (разложение можно делить между потоками)"""
        for arr in (self.U, self.S, self.Vt):
            arr.setflags(write=False)
        return self


def _check_input(matrix):
    A = np.asarray(matrix, dtype=float)
    if A.ndim != 2 or 0 in A.shape:
        raise InvalidDimensions(f"Ожидалась непустая 2D матрица, получено {A.shape}")
    if not np.all(np.isfinite(A)):
        raise NumericalFailure("Матрица содержит NaN или inf")
    return A


def _sort_descending(U, S, Vt):
    # стабильная сортировка: равные значения сохраняют исходный порядок
    idx = np.argsort(-S, kind="stable")
    return U[:, idx], S[idx], Vt[idx, :]


def fix_signs(U, S, Vt):
    """Наибольший по модулю элемент каждого столбца U делаем неотрицательным"""
    rows = np.argmax(np.abs(U), axis=0)
    signs = np.sign(U[rows, np.arange(U.shape[1])])
    signs[signs == 0] = 1.0
    return U * signs, S, Vt * signs[:, None]


def _complete_basis(U, good):
    """Дополняет столбцы U при нулевых сингулярных числах до ортонормированного набора"""
    m, r = U.shape
    n_good = int(np.count_nonzero(good))
    if n_good == r:
        return U

    base = U[:, good]
    # QR от [базис | I]: первые n_good столбцов Q совпадают с base с точностью до знака
    Q, _ = np.linalg.qr(np.hstack([base, np.eye(m)]))
    Q = Q[:, :m]

    completed = U.copy()
    completed[:, good] = base
    completed[:, ~good] = Q[:, n_good:n_good + (r - n_good)]
    return completed


def lapack_svd(matrix):
    A = _check_input(matrix)
    try:
        U, S, Vt = np.linalg.svd(A, full_matrices=False)
    except np.linalg.LinAlgError as e:
        raise NumericalFailure(f"SVD не сошлось: {e}") from e
    return U, S, Vt


def jacobi_svd(matrix, max_sweeps=JACOBI_MAX_SWEEPS, tol=JACOBI_TOL):
    """Односторонний метод Якоби для A (M x N).

    Столбцы рабочей копии A попарно вращаются, пока не станут взаимно
    ортогональными; их нормы дают S, нормированные столбцы — U,
    накопленные вращения — V.

    Столбцы с нормой ниже шума округления (M * N * eps * ||A||_F) считаются
    нулевыми и не вращаются. Рассчитан на небольшие изображения:
    каждый проход стоит O(M * N^2) операций в цикле Python.
    """
    A = _check_input(matrix)
    m, n = A.shape

    # Широкую матрицу раскладываем через транспонирование
    if m < n:
        U, S, Vt = jacobi_svd(A.T, max_sweeps=max_sweeps, tol=tol)
        return Vt.T, S, U.T

    # строки Wt — столбцы A, строки Vt — столбцы V: так срезы непрерывны
    Wt = np.array(A.T, order="C")
    Vt = np.eye(n)
    noise = m * n * np.finfo(float).eps * np.linalg.norm(A)
    floor = noise * noise

    for sweep in range(max_sweeps):
        rotated = False
        norms = np.einsum("ij,ij->i", Wt, Wt)
        for p in range(n - 1):
            for q in range(p + 1, n):
                alpha = norms[p]
                beta = norms[q]
                if min(alpha, beta) <= floor:
                    continue
                wp = Wt[p]
                wq = Wt[q]
                gamma = wp @ wq
                if abs(gamma) <= tol * np.sqrt(alpha * beta):
                    continue

                zeta = (beta - alpha) / (2.0 * gamma)
                # hypot вместо sqrt(1 + zeta^2): без переполнения при больших zeta
                t = (1.0 if zeta >= 0 else -1.0) / (abs(zeta) + np.hypot(1.0, zeta))
                if t == 0.0:
                    continue
                c = 1.0 / np.sqrt(1.0 + t * t)
                s = c * t
                rotated = True

                Wt[p], Wt[q] = c * wp - s * wq, s * wp + c * wq
                vp = Vt[p]
                vq = Vt[q]
                Vt[p], Vt[q] = c * vp - s * vq, s * vp + c * vq
                norms[p] = alpha - t * gamma
                norms[q] = beta + t * gamma

        if not rotated:
            logger.debug("Якоби сошёлся за %d проходов (%dx%d)", sweep + 1, m, n)
            break
    else:
        raise NumericalFailure(f"Метод Якоби не сошёлся за {max_sweeps} проходов")

    S = np.linalg.norm(Wt, axis=1)
    good = S > noise

    U = np.zeros((m, n))
    U[:, good] = Wt[good].T / S[good]
    U = _complete_basis(U, good)
    S = np.where(good, S, 0.0)

    return U, S, Vt


METHODS = {
    "lapack": lapack_svd,
    "jacobi": jacobi_svd,
}


def decompose(matrix, method="lapack"):
    """Считает Decomposition выбранным методом и фиксирует порядок и знаки"""
    try:
        svd = METHODS[method]
    except KeyError:
        raise ValueError(f"Неизвестный метод SVD: {method!r} (есть: {sorted(METHODS)})") from None

    U, S, Vt = svd(matrix)
    U, S, Vt = _sort_descending(U, S, Vt)
    U, S, Vt = fix_signs(U, S, Vt)

    if not (np.all(np.isfinite(U)) and np.all(np.isfinite(S)) and np.all(np.isfinite(Vt))):
        raise NumericalFailure("SVD вернуло нечисловые значения")

    return Decomposition(U=U, S=S, Vt=Vt)
