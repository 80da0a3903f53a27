class IdpBuildError(Exception):
    pass


class ArenaGrowthError(IdpBuildError, MemoryError):
    pass


class EventAggregationError(IdpBuildError):
    pass


class UnknownQualityFlagError(IdpBuildError, ValueError):
    pass


class StationIntegrityError(IdpBuildError):
    pass


class TableFormatError(IdpBuildError):
    pass
