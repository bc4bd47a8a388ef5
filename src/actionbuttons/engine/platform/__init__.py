# src/actionbuttons/engine/platform/__init__.py
from .base import (
    SessionOptions,
    FieldHandle,
    AnalyticsSession,
    Navigator,
    DialogOptions,
    Dialog,
    DialogService,
    FutureDialog,
    FutureDialogService,
    resolved_dialog,
    LogSink,
    FileLogSink
)
from .rest import RestClient, RestResponse
