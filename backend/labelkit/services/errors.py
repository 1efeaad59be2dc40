"""
Ошибки сервиса этикеток и дружелюбные сообщения для API.

Иерархия исключений:
- ValidationError — неверные входные данные (токены шаблона, координаты, параметры)
- RenderError — рисование невозможно (нет поверхности)
- TranscodeError — не удалось превратить пиксели в байты документа
- DispatchError — ошибка удалённого сервиса печати
"""


class LabelError(Exception):
    """Базовая ошибка сервиса этикеток."""


class ValidationError(LabelError):
    """Неверные входные данные."""


class MissingVariableError(ValidationError):
    """В шаблоне есть токен без значения."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Missing required variable: {token}")


class LayoutValidationError(ValidationError):
    """Координаты layout вне холста этикетки."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("Координаты вне холста: " + "; ".join(problems))


class RenderError(LabelError):
    """Поверхность рисования недоступна или имеет неверный размер."""


class TranscodeError(LabelError):
    """Не удалось закодировать растр в PNG/PDF."""


class DispatchError(LabelError):
    """Ошибка отправки задания на печать."""


class FriendlyError:
    """Человекопонятная ошибка с подсказкой."""

    def __init__(self, message: str, hint: str | None = None, details: str | None = None):
        self.message = message
        self.hint = hint
        self.details = details  # Техническая инфа для поддержки

    def to_dict(self) -> dict:
        result = {"message": self.message}
        if self.hint:
            result["hint"] = self.hint
        if self.details:
            result["details"] = self.details
        return result


# === Ошибки шаблонов ===


def missing_variable_error(token: str) -> FriendlyError:
    """Не заполнено значение токена."""
    return FriendlyError(
        message=f"Не заполнено поле «{token}»",
        hint="Все {{токены}} шаблона должны иметь непустое значение",
        details=f"token={token}",
    )


TEMPLATE_NOT_FOUND = FriendlyError(
    message="Шаблон не найден",
    hint="Проверьте ID шаблона или сохраните его заново",
)

LAYOUT_NOT_FOUND = FriendlyError(
    message="Layout не найден",
    hint="Возможно, он был удалён. Обновите список layout",
)

INVALID_LAYOUT = FriendlyError(
    message="Поля выходят за пределы этикетки 2x1",
    hint="Координаты должны быть в пределах 386x203 точек",
)

INVALID_INPUT = FriendlyError(
    message="Неверные параметры этикетки",
    hint="Проверьте размер шрифта (1-5), поворот (0/90/180/270), плотность и скорость",
)


# === Ошибки рендеринга ===

RENDER_FAILED = FriendlyError(
    message="Не удалось нарисовать этикетку",
    hint="Попробуйте ещё раз. Если проблема повторяется, обратитесь в поддержку",
)

TRANSCODE_FAILED = FriendlyError(
    message="Не удалось собрать PDF этикетки",
    hint="Попробуйте ещё раз или распечатайте через TSPL",
)


# === Ошибки печати ===

NO_PRINTER = FriendlyError(
    message="Принтер не найден",
    hint="Проверьте, что принтер включён и подключён к PrintNode",
)

DISPATCH_FAILED = FriendlyError(
    message="Сервис печати вернул ошибку",
    hint="Проверьте подключение к PrintNode и повторите печать",
)


def batch_partial_error(success_count: int, failed_count: int) -> FriendlyError:
    """Часть этикеток пакета не напечаталась."""
    return FriendlyError(
        message=f"Напечатано {success_count}, не удалось {failed_count}",
        hint="Повторите печать для неудавшихся этикеток",
        details=f"success={success_count}, failed={failed_count}",
    )
