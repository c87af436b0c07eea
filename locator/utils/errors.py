from __future__ import annotations


class InvalidArgumentError(ValueError):
    """Tham số không hợp lệ (range âm, không phải số...). Không thay đổi state."""


class PersistenceError(RuntimeError):
    """Đọc/ghi DB thất bại. Chỉ log, không rollback state trong RAM."""


class MalformedEntryError(ValueError):
    """Một dòng dữ liệu trong DB không parse được; dòng đó bị bỏ qua khi load."""
