class QARunnerError(Exception):
    """Base exception for QA Runner"""

    phase = "runner"

    def __init__(self, message: str = "", phase: str = None):
        super().__init__(message)
        if phase is not None:
            self.phase = phase

    def __str__(self):
        return f"[{self.phase}] {super().__str__()}"


class ConfigurationError(QARunnerError):
    """Configuration-related errors"""
    phase = "config"


class ConfigParseError(ConfigurationError):
    """Override text is not a valid JSON object"""
    phase = "config"


class InitError(QARunnerError):
    """Test root unresolvable, plugin unknown or step module broken"""
    phase = "init"


class BootstrapError(QARunnerError):
    """User bootstrap hook failed"""
    phase = "bootstrap"


class TestFailure(QARunnerError):
    """An individual test failed"""
    __test__ = False
    phase = "test"


class TeardownError(QARunnerError):
    """Teardown itself failed"""
    phase = "teardown"


class DataStoreError(QARunnerError, TypeError):
    """Key path descends through a non-container value"""
    phase = "data"


class LifecycleError(QARunnerError):
    """Orchestrator method called out of order"""
    phase = "lifecycle"
