from fastapi import status


class ShortlyError(Exception):
    """Базовая ошибка сервиса сокращения ссылок"""

    detail = "Ошибка сервиса"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str = None):
        super().__init__(detail or self.detail)
        self.detail = detail or self.detail


class InvalidUrl(ShortlyError):
    detail = "Недействительный URL"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidAlias(ShortlyError):
    detail = "Недопустимый пользовательский алиас"
    status_code = status.HTTP_400_BAD_REQUEST


class AliasTaken(ShortlyError):
    detail = "Пользовательский алиас уже занят"
    status_code = status.HTTP_409_CONFLICT


class LinkNotFound(ShortlyError):
    detail = "Ссылка не найдена"
    status_code = status.HTTP_404_NOT_FOUND


class LinkExpired(ShortlyError):
    detail = "Срок действия ссылки истек"
    status_code = status.HTTP_410_GONE


class EmptyBatch(ShortlyError):
    detail = "Требуется непустой список URL"
    status_code = status.HTTP_400_BAD_REQUEST


class BatchTooLarge(ShortlyError):
    detail = "Превышено максимальное количество URL в пакете"
    status_code = status.HTTP_400_BAD_REQUEST


class CodeSpaceExhausted(ShortlyError):
    detail = "Не удалось подобрать свободный короткий код"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class NoDataToExport(ShortlyError):
    detail = "Нет данных для экспорта"
    status_code = status.HTTP_400_BAD_REQUEST


class UnsupportedUpload(ShortlyError):
    detail = "Неподдерживаемый тип файла. Загрузите CSV или TXT."
    status_code = status.HTTP_400_BAD_REQUEST


class StoreUnavailable(ShortlyError):
    detail = "База данных недоступна"
    status_code = status.HTTP_400_BAD_REQUEST


class ShortCodeConflict(ShortlyError):
    """Запись отклонена ограничением уникальности хранилища"""

    detail = "Короткий код уже используется"
    status_code = status.HTTP_409_CONFLICT
