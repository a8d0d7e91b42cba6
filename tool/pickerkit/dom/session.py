"""
Session — ブラウザセッション管理

Playwright（同期 API）ブラウザの起動・終了・状態管理を担当する。
CLI の --url 指定時に実ページを開き、BrowserDocument を提供する。

主な機能:
  - ブラウザの起動（headed/headless・チャンネル切り替え）
  - Page の生成と URL への遷移
  - セッション状態の追跡
  - with 文によるリソースの安全なクリーンアップ
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Any, Optional

from .browser import BrowserDocument

if TYPE_CHECKING:
    from playwright.sync_api import Browser, Page, Playwright

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# セッション状態
# ---------------------------------------------------------------------------

class SessionState(enum.Enum):
    """ブラウザセッションの状態。"""

    IDLE = "idle"
    LAUNCHING = "launching"
    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


# ---------------------------------------------------------------------------
# BrowserSession 本体
# ---------------------------------------------------------------------------

class BrowserSession:
    """Playwright ブラウザセッションの管理クラス。

    使用例::

        with BrowserSession(headed=False) as session:
            document = session.goto("https://example.com/form")
            detection = picker_registry.detect(document)
    """

    def __init__(self, headed: bool = False, channel: Optional[str] = None) -> None:
        self._headed = headed
        self._channel = channel
        self._state: SessionState = SessionState.IDLE
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None

    @property
    def state(self) -> SessionState:
        """現在のセッション状態を返す。"""
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state == SessionState.ACTIVE

    @property
    def page(self) -> Optional[Page]:
        """現在の Page オブジェクトを返す。非アクティブ時は None。"""
        if not self.is_active:
            return None
        return self._page

    def launch(self) -> None:
        """ブラウザを起動し、Page を生成する。

        Raises:
            RuntimeError: 既にアクティブなセッションがある場合
        """
        if self._state == SessionState.ACTIVE:
            raise RuntimeError(
                "既にアクティブなセッションがあります。"
                "先に close() を呼んでください。"
            )

        self._state = SessionState.LAUNCHING
        logger.info("ブラウザを起動しています... (headed=%s, channel=%s)", self._headed, self._channel)

        try:
            from playwright.sync_api import sync_playwright

            self._playwright = sync_playwright().start()
            launch_options: dict[str, Any] = {"headless": not self._headed}
            if self._channel:
                launch_options["channel"] = self._channel
            self._browser = self._playwright.chromium.launch(**launch_options)
            self._page = self._browser.new_page()
            self._state = SessionState.ACTIVE
            logger.info("ブラウザを起動しました")

        except Exception:
            logger.exception("ブラウザの起動に失敗しました")
            self._release()
            self._state = SessionState.IDLE
            raise

    def _release(self) -> None:
        """起動途中で確保したブラウザと Playwright を解放する。"""
        try:
            if self._browser is not None:
                self._browser.close()
        except Exception:
            logger.exception("起動失敗後のブラウザ終了中にエラーが発生しました")
        try:
            if self._playwright is not None:
                self._playwright.stop()
        except Exception:
            logger.exception("起動失敗後の Playwright 停止中にエラーが発生しました")
        self._browser = None
        self._page = None
        self._playwright = None

    def goto(self, url: str) -> BrowserDocument:
        """URL に遷移し、読み込み後のドキュメントを返す。

        Raises:
            RuntimeError: セッションがアクティブでない場合
        """
        if not self.is_active or self._page is None:
            raise RuntimeError(
                "アクティブなセッションがありません。"
                "先に launch() を呼んでください。"
            )
        logger.info("ページを開きます: %s", url)
        self._page.goto(url, wait_until="load")
        return BrowserDocument.from_page(self._page)

    def close(self) -> None:
        """ブラウザを終了し、リソースをクリーンアップする。"""
        if self._state in (SessionState.CLOSED, SessionState.CLOSING, SessionState.IDLE):
            return

        self._state = SessionState.CLOSING
        logger.info("ブラウザを終了しています...")

        try:
            if self._browser is not None:
                self._browser.close()
            if self._playwright is not None:
                self._playwright.stop()
        except Exception:
            logger.exception("ブラウザの終了中にエラーが発生しました")
        finally:
            self._browser = None
            self._page = None
            self._playwright = None
            self._state = SessionState.CLOSED
            logger.info("ブラウザを終了しました")

    def __enter__(self) -> BrowserSession:
        self.launch()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
