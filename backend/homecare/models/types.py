from sqlalchemy import Enum as SAEnum


class CaseInsensitiveEnum(SAEnum):
    """Enum column storing lower-case values.

    Accepts enum members, values or upper-case names (``"PENDING"``) on write
    so rows written by older clients still load as members.
    """

    def __init__(self, enum_cls, **kwargs):
        self._enum_cls = enum_cls
        self._enum_kwargs = kwargs.copy()
        kwargs.setdefault("values_callable", lambda enum: [e.value for e in enum])
        super().__init__(enum_cls, **kwargs)

    def adapt(self, impltype, **kw):
        params = {**self._enum_kwargs, **kw}
        return CaseInsensitiveEnum(self._enum_cls, **params)

    def _normalise(self, value):
        if value is None:
            return None
        if isinstance(value, self._enum_cls):
            return value.value
        return str(value).lower()

    def bind_processor(self, dialect):
        parent = super().bind_processor(dialect)

        def process(value):
            value = self._normalise(value)
            if value is not None and parent:
                return parent(value)
            return value

        return process

    def result_processor(self, dialect, coltype):
        parent = super().result_processor(dialect, coltype)

        def process(value):
            if value is None:
                return None
            value = str(value).lower()
            if parent:
                return parent(value)
            return value

        return process
