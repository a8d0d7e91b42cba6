"""
pickerkit — 日付ピッカー自動操作ハーネス

ネストした DOM（メインドキュメント・Shadow ルート・同一オリジン iframe）から
日付ピッカーを検出し、ライブラリ別ストラテジーで open → setDate → confirm → validate を
実行する。

主要モジュール:
  - pickerkit.dom: DOM アクセス層（インメモリ DOM / Playwright アダプタ）
  - pickerkit.registry: ピッカーカタログと検出・操作レジストリ
  - pickerkit.engine: シナリオ実行エンジンとフロー後検証
  - pickerkit.cli: コマンドラインインターフェース
"""

__version__ = "0.1.0"
