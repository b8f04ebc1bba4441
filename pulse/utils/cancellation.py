class CancellationToken:
    """Флаг отмены одного запроса. После cancel() колбэки этого запроса не вызываются."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled
