"""
CLI エントリポイント — Typer ベースのコマンドラインインターフェース

pickerkit コマンドとして以下のサブコマンドを提供する:
  - run: シナリオを1回実行してステップログを表示
  - detect: ページ内のピッカーを検出
  - list-pickers: 対応ピッカー種別の一覧
  - show-picker: ピッカー種別のストラテジー詳細
  - list-scenarios: シナリオ ID の一覧

ページは --html（静的 HTML ファイルをインメモリ DOM で読み込む）または
--url（Playwright でブラウザを起動して開く）で指定する。
"""

from __future__ import annotations

import contextlib
import datetime as dt
import json
import logging
from pathlib import Path
from typing import Iterator, Optional

import typer

from .config import HarnessConfig, apply_cli_overrides, load_config_from_env
from .dom.html import HtmlDocument
from .dom.protocols import Scope
from .engine.executor import run_picker_scenario
from .engine.scenarios import ScenarioCatalog
from .engine.types import RunOptions
from .registry.mapping import get_strategy_mapping, list_picker_types
from .registry.registry import picker_registry

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Typer アプリ定義
# ---------------------------------------------------------------------------

app = typer.Typer(
    help=(
        "pickerkit — 日付ピッカー自動操作ハーネス\n\n"
        "基本の流れ:\n"
        "  1. pickerkit list-scenarios --picker FLATPICKR   シナリオを確認\n"
        "  2. pickerkit run DS1-FLATPICKR --html page.html    シナリオを実行\n\n"
        "詳しくは各コマンドに --help を付けてください。"
    ),
    no_args_is_help=True,
)

_state: dict[str, HarnessConfig] = {}


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="ログレベル（DEBUG/INFO/WARNING/ERROR）",
    ),
    scenario_file: Optional[Path] = typer.Option(
        None, "--scenario-file", help="追加シナリオを定義した YAML ファイル",
    ),
) -> None:
    """環境変数と共通オプションから設定を読み込み、ログを設定する。"""
    config = apply_cli_overrides(
        load_config_from_env(), log_level=log_level, scenario_file=scenario_file,
    )
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _state["config"] = config


def _config() -> HarnessConfig:
    return _state.get("config") or load_config_from_env()


# ---------------------------------------------------------------------------
# run コマンド
# ---------------------------------------------------------------------------

@app.command()
def run(
    scenario_id: str = typer.Argument(..., help="実行するシナリオ ID（例: DS1-FLATPICKR）"),
    html: Optional[Path] = typer.Option(None, "--html", help="静的 HTML ファイル"),
    url: Optional[str] = typer.Option(None, "--url", help="ブラウザで開く URL"),
    start: Optional[str] = typer.Option(None, "--start", help="開始日（YYYY-MM-DD）"),
    end: Optional[str] = typer.Option(None, "--end", help="終了日（YYYY-MM-DD）"),
    headed: Optional[bool] = typer.Option(None, "--headed/--headless", help="ブラウザ表示モード"),
    channel: Optional[str] = typer.Option(None, "--channel", help="Chromium のチャンネル（chrome/msedge 等）"),
    as_json: bool = typer.Option(False, "--json", help="結果を JSON で出力"),
) -> None:
    """シナリオを1回実行する（detect → open → setDate → confirm → validate）。"""
    try:
        config = apply_cli_overrides(_config(), headed=headed, browser_channel=channel)
        catalog = _load_catalog(config)
        options = RunOptions(start_date=_parse_date(start, "--start"), end_date=_parse_date(end, "--end"))

        with _open_scope(html, url, config) as scope:
            options.scope = scope
            result = run_picker_scenario(scenario_id, options, scenarios=catalog)

        if as_json:
            typer.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        else:
            typer.echo(f"シナリオ: {result.scenario_id}")
            typer.echo(f"ピッカー: {result.picker_type} (base={result.base_scenario or '-'})")
            for log in result.logs:
                detail = f"  {log.detail}" if log.detail else ""
                typer.echo(f"  {log.strategy:10s} {log.outcome}{detail}")
            status = "success" if result.success else f"failed ({result.failure_reason})"
            typer.echo(f"結果: {status}")

        if not result.success:
            raise typer.Exit(code=1)
    except typer.Exit:
        raise
    except Exception as exc:
        typer.echo(f"エラー: {exc}", err=True)
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# detect コマンド
# ---------------------------------------------------------------------------

@app.command()
def detect(
    html: Optional[Path] = typer.Option(None, "--html", help="静的 HTML ファイル"),
    url: Optional[str] = typer.Option(None, "--url", help="ブラウザで開く URL"),
    headed: Optional[bool] = typer.Option(None, "--headed/--headless", help="ブラウザ表示モード"),
    as_json: bool = typer.Option(False, "--json", help="結果を JSON で出力"),
) -> None:
    """ページ内で最も信頼度の高いピッカーを検出する。"""
    try:
        config = apply_cli_overrides(_config(), headed=headed)
        with _open_scope(html, url, config) as scope:
            detection = picker_registry.detect(scope)
            root_kind = detection.root.node_kind if detection is not None else None

        if detection is None:
            if as_json:
                typer.echo(json.dumps({"detected": False}))
            else:
                typer.echo("ピッカーは検出されませんでした")
            raise typer.Exit(code=1)

        if as_json:
            typer.echo(json.dumps({
                "detected": True,
                "pickerType": detection.picker_type,
                "confidence": detection.confidence,
                "root": root_kind,
            }))
        else:
            typer.echo(f"ピッカー: {detection.picker_type}")
            typer.echo(f"信頼度: {detection.confidence:.2f}")
            typer.echo(f"ルート: {root_kind}")
    except typer.Exit:
        raise
    except Exception as exc:
        typer.echo(f"エラー: {exc}", err=True)
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# カタログ参照コマンド
# ---------------------------------------------------------------------------

@app.command("list-pickers")
def list_pickers() -> None:
    """対応ピッカー種別と対応ベースシナリオの一覧を表示する。"""
    picker_types = list_picker_types()
    for picker_type in picker_types:
        config = get_strategy_mapping(picker_type)
        scenarios = ",".join(config.supported_base_scenarios) if config else ""
        typer.echo(f"  {picker_type:20s} {scenarios}")
    typer.echo(f"\n合計: {len(picker_types)} ピッカー")


@app.command("show-picker")
def show_picker(
    picker_type: str = typer.Argument(..., help="ピッカー種別（例: FLATPICKR）"),
) -> None:
    """ピッカー種別の検出方法とストラテジーを表示する。"""
    config = get_strategy_mapping(picker_type.upper())
    if config is None:
        typer.echo(
            f"エラー: 未登録のピッカー種別です: {picker_type}"
            f"（登録済み: {', '.join(list_picker_types())}）",
            err=True,
        )
        raise typer.Exit(code=1)

    typer.echo(f"[{config.picker_type}]")
    if config.documentation:
        typer.echo(f"  {config.documentation}")
    heuristics = config.detection
    if heuristics.selectors:
        typer.echo(f"  検出セレクタ: {', '.join(heuristics.selectors)}")
    if heuristics.class_patterns:
        patterns = [p if isinstance(p, str) else p.pattern for p in heuristics.class_patterns]
        typer.echo(f"  クラスパターン: {', '.join(patterns)}")
    if heuristics.global_check:
        typer.echo(f"  グローバル: {heuristics.global_check}")

    steps = (
        ("open", config.open_strategy),
        ("setDate", config.set_date_strategy),
        ("confirm", config.confirm_strategy),
        ("validate", config.validate_strategy),
    )
    for step, strategy in steps:
        typer.echo(f"  {step:10s} {_describe_strategy(strategy)}")

    fallbacks = config.fallback_strategies
    if fallbacks is not None:
        for step, strategies in (
            ("open", fallbacks.open),
            ("setDate", fallbacks.set_date),
            ("confirm", fallbacks.confirm),
            ("validate", fallbacks.validate_),
        ):
            for strategy in strategies:
                typer.echo(f"  {step:10s} (fallback) {_describe_strategy(strategy)}")

    typer.echo(f"  対応シナリオ: {', '.join(config.supported_base_scenarios)}")


@app.command("list-scenarios")
def list_scenarios(
    picker: Optional[str] = typer.Option(None, "--picker", help="ピッカー種別で絞り込む"),
) -> None:
    """シナリオ ID の一覧を表示する。"""
    try:
        catalog = _load_catalog(_config())
    except Exception as exc:
        typer.echo(f"エラー: {exc}", err=True)
        raise typer.Exit(code=1)

    entries = catalog.for_picker(picker.upper()) if picker else catalog.entries()
    for entry in entries:
        typer.echo(f"  {entry.scenario_id:28s} {entry.display_name}")
    typer.echo(f"\n合計: {len(entries)} シナリオ")


# ---------------------------------------------------------------------------
# 内部ヘルパー
# ---------------------------------------------------------------------------

@contextlib.contextmanager
def _open_scope(html: Optional[Path], url: Optional[str], config: HarnessConfig) -> Iterator[Scope]:
    """--html / --url からドキュメントを開き、終了時にブラウザを閉じる。"""
    if (html is None) == (url is None):
        raise ValueError("--html と --url のどちらか一方を指定してください")

    if html is not None:
        yield HtmlDocument.from_file(html)
        return

    from .dom.session import BrowserSession

    with BrowserSession(headed=config.headed, channel=config.browser_channel) as session:
        yield session.goto(url)


def _load_catalog(config: HarnessConfig) -> ScenarioCatalog:
    catalog = ScenarioCatalog.builtin()
    if config.scenario_file is not None:
        catalog = catalog.extended_from_file(config.scenario_file)
    return catalog


def _parse_date(value: Optional[str], option: str) -> Optional[dt.date]:
    if value is None:
        return None
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"{option} の日付形式が不正です: {value}（YYYY-MM-DD）") from None


def _describe_strategy(strategy) -> str:
    fields = strategy.model_dump(exclude_none=True, exclude={"type", "notes"})
    args = ", ".join(f"{k}={v!r}" for k, v in fields.items())
    return f"{strategy.type}({args})" if args else strategy.type
