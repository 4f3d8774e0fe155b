"""
Exceptions raised by epidisco-cli
"""


class EpidiscoError(Exception):
    """Base class for all epidisco-cli errors"""


class ParameterError(EpidiscoError):
    """An invalid parameter set"""


class MissingExperimentNameError(ParameterError):
    def __init__(self) -> None:
        super().__init__("The experiment name is required")


class MissingReferenceBuildError(ParameterError):
    def __init__(self) -> None:
        super().__init__("The reference build is required")


class MissingSampleError(ParameterError):
    """The normal or tumor sample input is missing"""

    def __init__(self, which: str) -> None:
        self.which = which
        super().__init__(f"The {which} sample input is required")


class InputFormatError(ParameterError):
    """A sample input or fragment could not be parsed"""


class PlanError(EpidiscoError):
    """A node graph could not be lowered into jobs"""


class DagExecutionError(EpidiscoError):
    """The DAG was updated out of order"""
