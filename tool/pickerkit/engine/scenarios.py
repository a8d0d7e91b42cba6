"""
シナリオレジストリ — シナリオ ID からメタデータ（ベースシナリオ・ピッカー種別）を引く

組み込みのシナリオマトリクスは、6つのベースシナリオ（presets 等、ピッカー種別なし）と、
全ピッカーコードとの組み合わせ DS<n>-<PICKER>（例: DS1-FLATPICKR）から成る。
YAML ファイル（ruamel.yaml で読み込み、Pydantic で検証）で追加のシナリオを定義できる。

YAML 形式::

    scenarios:
      - scenario_id: DS2-FLATPICKR-RANGE
        display_name: From–To (Flatpickr range mode)
        description: Flatpickr の range モードで開始日と終了日を選択する
        metadata:
          base_scenario: DS2
          picker_type: FLATPICKR

主な構成:
  - ScenarioMetadata / ScenarioEntry: シナリオ定義モデル
  - ScenarioCatalog: シナリオの検索・YAML による拡張
  - get_scenario / all_scenario_ids: 組み込みマトリクスの参照
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..registry.types import BaseScenarioId

logger = logging.getLogger(__name__)

_ROUTE_PREFIX = "/statements"


class ScenarioFileError(ValueError):
    """シナリオ定義ファイルの読み込み・検証に失敗した場合のエラー。"""


# ---------------------------------------------------------------------------
# シナリオ定義モデル
# ---------------------------------------------------------------------------

class ScenarioMetadata(BaseModel):
    """シナリオのメタデータ。picker_type が無いシナリオはピッカー固有ではない。"""

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_scenario: BaseScenarioId = Field(..., description="ベースシナリオ ID（DS1–DS6）")
    picker_type: Optional[str] = Field(default=None, description="ピッカー種別（バリアントのみ）")


class ScenarioEntry(BaseModel):
    """シナリオ1件の定義。"""

    model_config = ConfigDict(frozen=True, extra="forbid")

    scenario_id: str = Field(..., min_length=1)
    display_name: str
    description: str = ""
    route: Optional[str] = None
    metadata: Optional[ScenarioMetadata] = None


class _ScenarioFile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    scenarios: list[ScenarioEntry] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# 組み込みマトリクス
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PickerListing:
    """シナリオ ID・表示名・ルートに使うピッカーの表記。"""

    code: str
    display_name: str
    route_slug: str


# ベースシナリオのスラッグ（並び順が DS1–DS6 に対応する）
BASE_SCENARIO_SLUGS: tuple[str, ...] = (
    "presets",
    "from-to",
    "dual-calendar",
    "month-year",
    "year-only",
    "inline-calendar",
)

_BASE_SCENARIO_TEXT: dict[str, tuple[str, str]] = {
    "presets": ("Presets", "プリセット範囲（直近7日間・今月など）を持つ日付ピッカー"),
    "from-to": ("From–To", "開始日と終了日を連動した検証付きで選択する"),
    "dual-calendar": ("Dual calendar", "2つのカレンダーを並べて範囲を選択する"),
    "month-year": ("Month & year", "月と年のドロップダウンのみ（日付選択なし）"),
    "year-only": ("Year only", "年の選択のみ"),
    "inline-calendar": ("Inline calendar", "常時表示のインラインカレンダー（ポップオーバーなし）"),
}

PICKER_LISTINGS: tuple[PickerListing, ...] = (
    PickerListing("FLATPICKR", "Flatpickr", "flatpickr"),
    PickerListing("PIKADAY", "Pikaday", "pikaday"),
    PickerListing("AIR_DATEPICKER", "Air Datepicker", "air-datepicker"),
    PickerListing("JQUERY_UI", "jQuery UI Datepicker", "jquery-ui-datepicker"),
    PickerListing("BOOTSTRAP_UX", "Bootstrap Datepicker (uxsolutions)", "bootstrap-datepicker"),
    PickerListing("DATERANGEPICKER", "DateRangePicker (Dan Grossman)", "daterangepicker"),
    PickerListing("LITEPICKER", "Litepicker", "litepicker"),
    PickerListing("REACT_DATEPICKER", "React Datepicker", "react-datepicker"),
    PickerListing("MUI", "MUI DatePicker", "mui-datepicker"),
    PickerListing("ANTD", "Ant Design DatePicker", "antd-datepicker"),
    PickerListing("REACT_DAY_PICKER", "React Day Picker", "react-day-picker"),
    PickerListing("ANGULAR_MATERIAL", "Angular Material Datepicker", "angular-material-datepicker"),
    PickerListing("PRIMENG", "PrimeNG DatePicker", "primeng-datepicker"),
    PickerListing("KENDO", "Kendo UI Datepicker", "kendo-datepicker"),
    PickerListing("SYNCFUSION", "Syncfusion DatePicker", "syncfusion-datepicker"),
    PickerListing("DEVEXPRESS", "DevExpress Date Editor", "devexpress-date-editor"),
    PickerListing("CARBON", "Carbon Design DatePicker (IBM)", "carbon-datepicker"),
    PickerListing("CLARITY", "Clarity Datepicker (VMware)", "clarity-datepicker"),
    PickerListing("SEMANTIC_UI", "Semantic UI Calendar", "semantic-ui-calendar"),
    PickerListing("MOBISCROLL", "Mobiscroll Date Picker", "mobiscroll-datepicker"),
    PickerListing("IONIC", "Ionic DateTime Picker", "ionic-datetime-picker"),
)


def _build_builtin_entries() -> list[ScenarioEntry]:
    """ベースシナリオ → ピッカーバリアントの順でエントリを生成する。"""
    entries: list[ScenarioEntry] = []
    for slug in BASE_SCENARIO_SLUGS:
        display_name, description = _BASE_SCENARIO_TEXT[slug]
        entries.append(ScenarioEntry(
            scenario_id=slug,
            display_name=display_name,
            description=description,
            route=f"{_ROUTE_PREFIX}/{slug}",
        ))

    for index, slug in enumerate(BASE_SCENARIO_SLUGS, start=1):
        base_ds = f"DS{index}"
        base_display, _ = _BASE_SCENARIO_TEXT[slug]
        for picker in PICKER_LISTINGS:
            entries.append(ScenarioEntry(
                scenario_id=f"{base_ds}-{picker.code}",
                display_name=f"{base_display} ({picker.display_name})",
                description=f"ピッカーバリアント: {base_ds} 上の {picker.display_name}",
                route=f"{_ROUTE_PREFIX}/{picker.route_slug}/{slug}",
                metadata=ScenarioMetadata(base_scenario=base_ds, picker_type=picker.code),
            ))
    return entries


# ---------------------------------------------------------------------------
# ScenarioCatalog 本体
# ---------------------------------------------------------------------------

class ScenarioCatalog:
    """シナリオ ID からシナリオ定義を引くカタログ。

    カタログは構築後に変更しない。YAML で拡張する場合は新しいカタログを返す。

    使用例::

        catalog = ScenarioCatalog.builtin().extended_from_file(Path("scenarios.yaml"))
        entry = catalog.get("DS1-FLATPICKR")
    """

    def __init__(self, entries: Iterable[ScenarioEntry] = ()) -> None:
        self._entries: dict[str, ScenarioEntry] = {}
        for entry in entries:
            if entry.scenario_id in self._entries:
                logger.warning("シナリオ '%s' の定義を上書きします", entry.scenario_id)
            self._entries[entry.scenario_id] = entry

    @classmethod
    def builtin(cls) -> ScenarioCatalog:
        """組み込みマトリクスのカタログを返す。"""
        return _BUILTIN

    # ----- 参照 -----

    def get(self, scenario_id: str) -> Optional[ScenarioEntry]:
        return self._entries.get(scenario_id)

    def has(self, scenario_id: str) -> bool:
        return scenario_id in self._entries

    @property
    def ids(self) -> list[str]:
        """全シナリオ ID を定義順（ベースシナリオ → バリアント → 追加分）で返す。"""
        return list(self._entries)

    def entries(self) -> list[ScenarioEntry]:
        return list(self._entries.values())

    def for_picker(self, picker_type: str) -> list[ScenarioEntry]:
        """指定ピッカー種別のシナリオを定義順で返す。"""
        return [
            entry for entry in self._entries.values()
            if entry.metadata is not None and entry.metadata.picker_type == picker_type
        ]

    def scenario_id_from_route(self, picker_slug: str, base_slug: str) -> Optional[str]:
        """ルート /statements/<picker>/<base> に対応するバリアント ID を返す。"""
        if base_slug not in BASE_SCENARIO_SLUGS:
            return None
        code = next((p.code for p in PICKER_LISTINGS if p.route_slug == picker_slug), None)
        if code is None:
            return None
        scenario_id = f"DS{BASE_SCENARIO_SLUGS.index(base_slug) + 1}-{code}"
        return scenario_id if scenario_id in self._entries else None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, scenario_id: object) -> bool:
        return scenario_id in self._entries

    # ----- 拡張 -----

    def extended(self, entries: Iterable[ScenarioEntry]) -> ScenarioCatalog:
        """既存の定義に entries を追加した新しいカタログを返す。"""
        return ScenarioCatalog([*self._entries.values(), *entries])

    def extended_from_file(self, path: Path) -> ScenarioCatalog:
        """YAML ファイルのシナリオ定義を追加した新しいカタログを返す。

        Raises:
            ScenarioFileError: ファイルが存在しない・YAML 構文エラー・スキーマ違反の場合
        """
        return self.extended(load_scenario_file(path))


_BUILTIN = ScenarioCatalog(_build_builtin_entries())


# ---------------------------------------------------------------------------
# YAML 読み込み
# ---------------------------------------------------------------------------

def load_scenario_file(path: Path) -> list[ScenarioEntry]:
    """YAML ファイルからシナリオ定義を読み込む。

    Args:
        path: YAML ファイルのパス

    Returns:
        ファイルに定義されたシナリオ（定義順）

    Raises:
        ScenarioFileError: ファイルが存在しない・YAML 構文エラー・スキーマ違反の場合
    """
    path = Path(path)
    if not path.exists():
        raise ScenarioFileError(f"シナリオファイルが見つかりません: {path}")

    yaml = YAML(typ="safe")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.load(f)
    except YAMLError as e:
        line_info = ""
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            line_info = f" (行 {mark.line + 1}, 列 {mark.column + 1})"
        raise ScenarioFileError(f"YAML 構文エラー{line_info}: {e}") from e

    if data is None:
        raise ScenarioFileError(f"シナリオファイルが空です: {path}")
    if not isinstance(data, dict):
        raise ScenarioFileError(f"シナリオファイルの最上位はマッピングである必要があります: {path}")

    try:
        parsed = _ScenarioFile(**data)
    except PydanticValidationError as e:
        raise ScenarioFileError(f"スキーマ検証エラー: {e}") from e

    logger.info("シナリオファイルを読み込みました: %s (%d 件)", path, len(parsed.scenarios))
    return parsed.scenarios


# ---------------------------------------------------------------------------
# 組み込みマトリクスの参照
# ---------------------------------------------------------------------------

def get_scenario(scenario_id: str) -> Optional[ScenarioEntry]:
    """組み込みマトリクスからシナリオを返す。未知の ID なら None。"""
    return _BUILTIN.get(scenario_id)


def all_scenario_ids() -> list[str]:
    """組み込みマトリクスの全シナリオ ID（ベースシナリオ → バリアント）を返す。"""
    return _BUILTIN.ids


def get_scenario_id_from_route(picker_slug: str, base_slug: str) -> Optional[str]:
    return _BUILTIN.scenario_id_from_route(picker_slug, base_slug)
