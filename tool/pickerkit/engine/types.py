"""
実行エンジン型定義 — ステップログ・実行結果・実行オプション

エンジン本体はピッカー非依存であり、振る舞いはシナリオメタデータの
base_scenario（DS1–DS6）によってのみ決まる。

主な構成:
  - FailureReason / StepName / BaseScenarioKind: Literal 型
  - StepLog: 1ステップ分のログ（追記専用）
  - FlowValidation: フロー後検証の結果
  - ExecutionResult: 1回の実行結果（返却後は不変）
  - RunOptions: 実行オプション
"""

from __future__ import annotations

import datetime as dt
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Literal, Optional

if TYPE_CHECKING:
    from ..dom.protocols import Scope
    from ..registry.types import DetectionResult


FailureReason = Literal[
    "detection_failed",
    "interaction_failed",
    "validation_failed",
    "silent_failure",
]
"""失敗の分類。"""

StepName = Literal["detect", "open", "setDate", "confirm", "validate"]

StepOutcome = Literal[
    "success",
    "detection_failed",
    "interaction_failed",
    "validation_failed",
    "silent_failure",
]

BaseScenarioKind = Literal[
    "presets",
    "from-to",
    "dual-calendar",
    "month-year",
    "year-only",
    "inline-calendar",
]
"""ベースシナリオ（DS1–DS6）の振る舞い種別。"""


def now_ms() -> int:
    """現在時刻のエポックミリ秒を返す。"""
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# ステップログ
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StepLog:
    """フロー内の1ステップの記録。

    Attributes:
        scenario: シナリオ ID（例: DS1-FLATPICKR）
        picker: ピッカー種別（例: FLATPICKR）
        strategy: ステップ名
        outcome: success または失敗理由
        detail: 補足（例外メッセージ、期待値と実際の値など）
        at: 記録時刻（エポックミリ秒）
    """

    scenario: str
    picker: str
    strategy: StepName
    outcome: StepOutcome
    detail: Optional[str] = None
    at: int = field(default_factory=now_ms)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "scenario": self.scenario,
            "picker": self.picker,
            "strategy": self.strategy,
            "outcome": self.outcome,
            "at": self.at,
        }
        if self.detail is not None:
            data["detail"] = self.detail
        return data


# ---------------------------------------------------------------------------
# 検証結果・実行結果
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FlowValidation:
    """フロー後検証の結果。

    model_updated は input_value_updated と同値（アプリ状態を直接調べる手段が無いため）。
    """

    input_value_updated: bool
    model_updated: bool
    payload_correct: bool
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.input_value_updated and self.model_updated and self.payload_correct

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "inputValueUpdated": self.input_value_updated,
            "modelUpdated": self.model_updated,
            "payloadCorrect": self.payload_correct,
        }
        if self.message is not None:
            data["message"] = self.message
        return data


@dataclass(frozen=True)
class ExecutionResult:
    """ピッカーシナリオ1回分の実行結果。

    Attributes:
        scenario_id: 実行したシナリオ ID
        picker_type: シナリオメタデータのピッカー種別
        base_scenario: 振る舞いを決めたベースシナリオ（DS1–DS6）
        success: フロー全体が成功したか
        failure_reason: 失敗理由（success=False の場合のみ）
        logs: ステップログ（実行順）
        detection: 検出結果（detect が何かを見つけた場合）
        validation: 検証結果（validate ステップで判定した場合）
    """

    scenario_id: str
    picker_type: str
    base_scenario: str
    success: bool
    failure_reason: Optional[FailureReason] = None
    logs: tuple[StepLog, ...] = ()
    detection: Optional[DetectionResult] = None
    validation: Optional[FlowValidation] = None

    def to_dict(self) -> dict[str, Any]:
        """JSON 出力用の辞書に変換する（DOM 参照は信頼度と種別のみ残す）。"""
        data: dict[str, Any] = {
            "scenarioId": self.scenario_id,
            "pickerType": self.picker_type,
            "baseScenario": self.base_scenario,
            "success": self.success,
            "logs": [log.to_dict() for log in self.logs],
        }
        if self.failure_reason is not None:
            data["failureReason"] = self.failure_reason
        if self.detection is not None:
            data["detection"] = {
                "pickerType": self.detection.picker_type,
                "confidence": self.detection.confidence,
            }
        if self.validation is not None:
            data["validation"] = self.validation.to_dict()
        return data


# ---------------------------------------------------------------------------
# 実行オプション
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DateRange:
    """開始日と終了日（単一日付の場合は同じ日付）。"""

    start: dt.date
    end: dt.date

    @property
    def is_single_day(self) -> bool:
        return self.start == self.end


@dataclass
class RunOptions:
    """run_picker_scenario の実行オプション。

    Attributes:
        scope: 検索範囲（ドキュメントまたは要素）。None ならレジストリの default_scope
        start_date: 明示的な開始日。省略時はベースシナリオの既定値
        end_date: 明示的な終了日。start_date のみ指定された場合は単一日付
        on_step: ステップログ追加のたびに同期的に呼ばれるコールバック
    """

    scope: Optional[Scope] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    on_step: Optional[Callable[[StepLog], None]] = None
