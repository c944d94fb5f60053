"""Приведение матрицы к виду rows >= cols перед SVD и обратно"""


def normalize(matrix):
    """Возвращает (матрица, transposed): широкая матрица транспонируется"""
    m, n = matrix.shape
    if m < n:
        return matrix.T, True
    return matrix, False


def denormalize(matrix, transposed):
    return matrix.T if transposed else matrix
