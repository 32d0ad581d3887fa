from majiang.tests.mocks.connection import MockConnection

__all__ = ["MockConnection"]
