class EstrellaBuildError(Exception):
    """Base class for errors raised by estrella-build."""


class InterfaceNotFoundError(EstrellaBuildError, LookupError):
    def __init__(self, interface_name: str, declaration_file: str) -> None:
        super().__init__(f"Interface '{interface_name}' not found in {declaration_file}")
        self.interface_name = interface_name
        self.declaration_file = declaration_file


class HookError(EstrellaBuildError):
    """A ``before_build`` or ``after_build`` phase raised for one target."""

    def __init__(self, target_name: str, phase: str, cause: BaseException) -> None:
        super().__init__(f"{target_name}: {phase} failed: {cause}")
        self.target_name = target_name
        self.phase = phase
        self.cause = cause
