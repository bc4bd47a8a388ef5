import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from ..registry import register_action, BaseAction
from ..definitions import ActionKind
from ...platform.base import DialogOptions
from ...utils.data_parser import format_elapsed
from ....services.exceptions import InvalidConfigurationError, RemoteCallError

logger = logging.getLogger(__name__)

# ============================================================================
# 1. 应用重新加载 (App Reload)
# ============================================================================

@register_action(ActionKind.START_RELOAD)
class StartReloadAction(BaseAction):
    """
    重新加载当前应用并显示进度对话框。
    eitherOr 为 True 时执行部分加载；成功后保存应用。
    用户中止时取消加载并中断动作链。
    """
    async def execute(self) -> Optional[bool]:
        started = datetime.now()
        dialog = self.runtime.dialogs.show(DialogOptions(
            title="Reload started",
            message="The reload for this app was started.",
            showProgress=True,
            cancelLabel="Abort",
            hideCancelButton=False,
            hideOkButton=True,
            closeOnEscape=False
        ))
        self._succeeded = False

        ticker = asyncio.create_task(_tick(dialog, started, self.runtime.settings.PROGRESS_TICK))
        reload_task = asyncio.create_task(self._reload(dialog, ticker))
        try:
            confirmed = await dialog.closed
        finally:
            ticker.cancel()

        if confirmed:
            await reload_task
            return self._succeeded

        if not reload_task.done():
            reload_task.cancel()
        await self.session.cancel_reload()
        logger.info("App reload aborted by the user.")

        aborted = self.runtime.dialogs.show(DialogOptions(
            title="Reload aborted",
            message="The reload for this app was aborted.",
            showProgress=True,
            okLabel="Close"
        ))
        aborted.elapsed_time = format_elapsed(started)
        await aborted.closed
        return False

    async def _reload(self, dialog: Any, ticker: asyncio.Task) -> None:
        try:
            self._succeeded = bool(await self.session.do_reload(0, self.item.eitherOr, False))
            if self._succeeded:
                await self.session.do_save()
        except Exception as e:
            logger.warning(f"App reload failed: {e}", exc_info=True)
            self._succeeded = False
        ticker.cancel()

        dialog.input.hideCancelButton = True
        dialog.input.hideOkButton = False
        if self._succeeded:
            dialog.input.title = "Reload executed"
            dialog.input.message = "The reload for this app was executed successfully."
            if self.item.taskAutoResolve:
                dialog.close(True)
        else:
            dialog.input.title = "Reload failed"
            dialog.input.message = "The reload for this app failed."

async def _tick(dialog: Any, started: datetime, interval: float) -> None:
    while True:
        dialog.elapsed_time = format_elapsed(started)
        await asyncio.sleep(interval)

# ============================================================================
# 2. 重新加载任务 (Reload Task via the Repository API)
# ============================================================================

class ReloadTaskFailed(RemoteCallError):
    """执行结果的状态为失败，或当前用户无权读取执行结果。"""
    def __init__(self, error: Dict[str, Any]):
        details = error.get("details") or []
        message = details[-1].get("message") if details else error.get("message")
        super().__init__(message or "Unknown error", data=error)
        self.error = error

@register_action(ActionKind.START_RELOAD_TASK)
class StartReloadTaskAction(BaseAction):
    """
    启动一个重新加载任务并监控其执行结果。
    流程: 读取任务 -> 检查是否已在运行 -> 确认 -> 同步启动 -> 轮询执行结果。
    任务无法启动、已在运行或执行失败时，在对话框关闭后中断动作链。
    """
    async def execute(self) -> Optional[bool]:
        if self.runtime.rest is None:
            raise InvalidConfigurationError("startReloadTask requires a REST client.")
        if not self.item.task:
            return await self._feedback("The settings for this action are not properly defined.")

        qrs = self.runtime.settings.QRS_PATH_PREFIX
        task_id = self.item.task

        # 1. 读取任务与正在运行的执行会话
        try:
            task = (await self.rest.request("GET", f"{qrs}/reloadtask/{task_id}")).data
        except RemoteCallError:
            return await self._feedback(f"The reload task with id '{task_id}' was not found.")

        name = task.get("name", task_id)
        try:
            sessions = (await self.rest.request(
                "GET", f"{qrs}/executionsession",
                params={"filter": f"reloadTask.id eq {task.get('id', task_id)}"}
            )).data
        except RemoteCallError as e:
            return await self._feedback(f"The status of the reload task named '{name}' could not be read: {e.message}")

        if sessions:
            return await self._feedback(
                f"The reload task named '{name}' is already running.",
                title="Reload task running"
            )

        # 2. 确认
        if not self.item.taskSkipConfirmation:
            confirm = self.runtime.dialogs.show(DialogOptions(
                title="Reload task",
                message=f"You are going to start the reload task named '{name}'.",
                okLabel="Start task",
                cancelLabel="Cancel",
                hideCancelButton=False
            ))
            if not await confirm.closed:
                logger.info(f"Reload task '{name}' was not confirmed.")
                return False

        # 3. 启动
        try:
            started = await self.rest.request("POST", f"{qrs}/task/{task.get('id', task_id)}/start/synchronous")
            session_id = started.data["value"]
        except (RemoteCallError, KeyError, TypeError) as e:
            reason = e.data if isinstance(e, RemoteCallError) and e.data else e
            return await self._feedback(
                f"Something went wrong when trying to start the reload task named '{name}': {reason}",
                title="Reload task not started"
            )

        logger.info(f"Reload task '{name}' started with execution id '{session_id}'.")
        return await self._monitor(task, name, session_id)

    @property
    def rest(self) -> Any:
        return self.runtime.rest

    async def _feedback(self, message: str, title: str = "Reload task error") -> bool:
        dialog = self.runtime.dialogs.show(DialogOptions(title=title, message=message, okLabel="Close"))
        await dialog.closed
        return False

    async def _monitor(self, task: Dict[str, Any], name: str, session_id: str) -> bool:
        started = datetime.now()
        display = self.item.taskDisplayProgress
        dialog = self.runtime.dialogs.show(DialogOptions(
            title="Reload task started",
            message=f"The reload task named '{name}' was started.",
            showProgress=display != "hidden",
            hideCancelButton=True,
            # 未设置可选进度时，任务结束前不能关闭对话框
            hideOkButton=display == "",
            closeOnEscape=False
        ))
        self._failure: Optional[Dict[str, Any]] = None

        # hidden: 不计时也不轮询，由用户点击 OK 结束该步骤
        watchers = []
        if display != "hidden":
            interval = self.runtime.settings.PROGRESS_TICK
            watchers.append(asyncio.create_task(_tick(dialog, started, interval)))
            watchers.append(asyncio.create_task(self._poll(dialog, name, session_id, interval)))
        try:
            confirmed = await dialog.closed
        finally:
            for watcher in watchers:
                watcher.cancel()

        if self._failure is not None:
            if not confirmed and self._failure.get("fileReferenceID"):
                await self._download_log(task, name, self._failure["fileReferenceID"])
            return False
        return confirmed is not False

    async def _poll(self, dialog: Any, name: str, session_id: str, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                result = await self._execution_result(session_id)
            except RemoteCallError as e:
                self._failed(dialog, name, e)
                return
            if result is not None:
                self._succeeded(dialog, name)
                return

    async def _execution_result(self, session_id: str) -> Optional[Dict[str, Any]]:
        """:return: 成功时返回执行结果，仍在运行时返回 None；失败时抛出 ReloadTaskFailed"""
        settings = self.runtime.settings
        response = await self.rest.request(
            "GET", f"{settings.QRS_PATH_PREFIX}/executionresult",
            params={"filter": f"executionId eq {session_id}"}
        )
        results = response.data
        if isinstance(results, list) and not results:
            raise ReloadTaskFailed({"message": "Forbidden"})
        if not isinstance(results, list) or not isinstance(results[0], dict):
            logger.warning(f"Unexpected execution result for '{session_id}': {str(results)[:200]}")
            raise ReloadTaskFailed({"message": "Unexpected response when reading the execution result"})
        result = results[0]
        if result.get("status") == settings.TASK_STATUS_FAILED:
            raise ReloadTaskFailed(result)
        if result.get("status") == settings.TASK_STATUS_SUCCESS:
            return result
        return None

    def _succeeded(self, dialog: Any, name: str) -> None:
        logger.info(f"Reload task '{name}' executed successfully.")
        dialog.input.title = "Reload task executed"
        dialog.input.message = f"The reload task named '{name}' was executed successfully."
        dialog.input.hideOkButton = False
        if self.item.taskAutoResolve:
            dialog.close(True)

    def _failed(self, dialog: Any, name: str, error: RemoteCallError) -> None:
        logger.warning(f"Reload task '{name}' failed: {error.message}")
        self._failure = error.data if isinstance(error.data, dict) else {"message": error.message}
        dialog.input.title = "Reload task failed"
        dialog.input.message = f"The reload task named '{name}' failed with the following message: {error.message}"
        dialog.input.hideOkButton = False
        if self._failure.get("details"):
            dialog.error = self._failure
        if self._failure.get("fileReferenceID"):
            dialog.input.cancelLabel = "Download log"
            dialog.input.hideCancelButton = False

    async def _download_log(self, task: Dict[str, Any], name: str, file_reference: str) -> None:
        qrs = self.runtime.settings.QRS_PATH_PREFIX
        try:
            reference = await self.rest.request(
                "GET", f"{qrs}/reloadtask/{task.get('id')}/scriptlog",
                params={"fileReferenceId": file_reference}
            )
            log = await self.rest.request("GET", f"{qrs}/download/reloadtask/{reference.data['value']}/{name}.log")
        except (RemoteCallError, KeyError, TypeError) as e:
            logger.warning(f"Script log of reload task '{name}' could not be downloaded: {e}")
            return
        text = log.data if isinstance(log.data, str) else json.dumps(log.data)
        self.runtime.log_sink.save(f"{name}.log", text)
