# ##############################################################################
# MODULE: MEMORY STORAGE
# DESCRIPTION: Quản lý dữ liệu tạm thời (In-Memory) để truy xuất nhanh.
#              Là nguồn sự thật (source of truth) cho preference của user
#              trong suốt vòng đời process; DB chỉ là bản sao.
# ##############################################################################

from __future__ import annotations

from dataclasses import dataclass, field, replace

from locator.core.colors import UNSET, ColorSpec


# ------------------------------------------------------------------------------
# Class: UserPreference
# Purpose: Preference của một user. remembered_range luôn >= 0.
# ------------------------------------------------------------------------------
@dataclass
class UserPreference:
    remembered_range: int
    receive_enabled: bool = True
    color: ColorSpec = field(default=UNSET)

    @property
    def effective_range(self) -> int:
        return self.remembered_range if self.receive_enabled else 0

    def copy(self) -> UserPreference:
        return replace(self)


# ------------------------------------------------------------------------------
# Class: PreferenceState
# Purpose: Kho chứa UserPreference trong RAM (Dictionary) + range mặc định.
#          Không chứa logic nghiệp vụ, chỉ get/set.
# ------------------------------------------------------------------------------
class PreferenceState:
    def __init__(self, *, default_range: int) -> None:
        self._default_range = max(0, int(default_range))
        self._data: dict[int, UserPreference] = {}

    @property
    def default_range(self) -> int:
        return self._default_range

    @default_range.setter
    def default_range(self, value: int) -> None:
        self._default_range = max(0, int(value))

    # --------------------------------------------------------------------------
    # Method: get
    # Purpose: Lấy entry đã lưu. Trả về None nếu user chưa từng được ghi.
    # --------------------------------------------------------------------------
    def get(self, user_id: int) -> UserPreference | None:
        return self._data.get(user_id)

    # --------------------------------------------------------------------------
    # Method: resolve
    # Purpose: Như get nhưng user lạ trả về giá trị mặc định,
    #          KHÔNG tạo entry mới trong kho.
    # --------------------------------------------------------------------------
    def resolve(self, user_id: int) -> UserPreference:
        existing = self._data.get(user_id)
        if existing is not None:
            return existing
        return UserPreference(remembered_range=self._default_range)

    def set(self, user_id: int, pref: UserPreference) -> None:
        pref.remembered_range = max(0, int(pref.remembered_range))
        self._data[user_id] = pref

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._data

    def __len__(self) -> int:
        return len(self._data)

    # --------------------------------------------------------------------------
    # Method: all
    # Purpose: Trả về bản sao của toàn bộ dữ liệu (để sweep/save DB).
    # --------------------------------------------------------------------------
    def all(self) -> dict[int, UserPreference]:
        return self._data.copy()

    def snapshot(self) -> tuple[dict[int, UserPreference], int]:
        # Bản sao sâu để save không bị ảnh hưởng bởi mutation sau đó
        return {uid: p.copy() for uid, p in self._data.items()}, self._default_range
