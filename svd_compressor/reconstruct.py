import numbers

import numpy as np

from .errors import InvalidRank


def check_rank(k):
    """k должно быть целым >= 1"""
    if isinstance(k, bool) or not isinstance(k, numbers.Integral):
        raise InvalidRank(f"k должно быть целым числом, получено {k!r}")
    if k < 1:
        raise InvalidRank(f"k должно быть >= 1, получено {k}")
    return int(k)


def effective_rank(k, max_rank):
    """k_eff = min(k, max_rank)"""
    return min(check_rank(k), max_rank)


def truncate(decomp, k):
    """Первые k_eff компонент: U_k, S_k (диагональная), Vt_k"""
    k_eff = effective_rank(k, decomp.rank)
    U_k = decomp.U[:, :k_eff]
    S_k = np.diag(decomp.S[:k_eff])
    Vt_k = decomp.Vt[:k_eff, :]
    return U_k, S_k, Vt_k


def reconstruct(decomp, k):
    """Восстанавливаем матрицу ранга k_eff: U_k @ S_k @ Vt_k"""
    U_k, S_k, Vt_k = truncate(decomp, k)
    return U_k @ S_k @ Vt_k


def frobenius_error(original, approx):
    return float(np.linalg.norm(np.asarray(original) - np.asarray(approx), "fro"))
