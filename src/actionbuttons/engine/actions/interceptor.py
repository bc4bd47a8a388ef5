from typing import Protocol, Callable, Awaitable, Optional
from .definitions import ActionDescriptor, ExecutionContext

# 定义 Next 函数的签名：一个不接受参数、返回步骤结果的异步函数
NextCall = Callable[[], Awaitable[Optional[bool]]]

class StepInterceptor(Protocol):
    """
    [纯粹引擎协议] 步骤执行拦截器。

    设计原则：
    1. 纯粹性：不依赖宿主 UI。
    2. 包裹性：控制单个步骤执行的前（Pre）、中（Exec）、后（Post）以及异常（Exception）。
    """
    async def intercept(
        self,
        index: int,
        item: ActionDescriptor,
        context: ExecutionContext,
        next_call: NextCall
    ) -> Optional[bool]:
        """
        拦截逻辑。必须在逻辑中调用 await next_call() 来继续执行链。
        """
        ...
