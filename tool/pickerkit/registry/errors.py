"""
レジストリ例外定義

ピッカー操作（open / set_date / confirm）が実行できなかった場合に送出する。
Executor はこれらをステップ境界で捕捉し、interaction_failed として分類する。
"""

from __future__ import annotations


class PickerError(Exception):
    """ピッカーレジストリのエラーの基底クラス。"""


class PickerInteractionError(PickerError):
    """主ストラテジー・フォールバックのいずれも操作対象を見つけられなかった場合のエラー。

    Attributes:
        picker_type: 対象のピッカー種別
        step: 失敗した操作（open / set_date / confirm）
        attempted: 試行したストラテジーの type 一覧
    """

    def __init__(self, picker_type: str, step: str, attempted: list[str]) -> None:
        self.picker_type = picker_type
        self.step = step
        self.attempted = attempted
        tried = ", ".join(attempted) if attempted else "(なし)"
        super().__init__(
            f"{picker_type} の {step} を実行できませんでした。"
            f"試行したストラテジー: [{tried}]"
        )


class UnknownPickerTypeError(PickerError, KeyError):
    """カタログに登録されていないピッカー種別が指定された場合のエラー。"""

    def __init__(self, picker_type: str, registered: list[str]) -> None:
        self.picker_type = picker_type
        names = ", ".join(registered)
        super().__init__(
            f"ピッカー '{picker_type}' は登録されていません。"
            f"登録済みピッカー: [{names}]"
        )

    def __str__(self) -> str:
        # KeyError は引数を repr で表示するため、メッセージをそのまま返す
        return str(self.args[0])
