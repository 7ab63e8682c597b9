"""
services.confirmation

Yes/no confirmation before destructive actions. Views receive any callable
``confirm(message) -> bool``; QtConfirmation is the desktop implementation and
blocks until the user answers.
"""

from PyQt5 import QtWidgets


class QtConfirmation:
    def __init__(self, parent: QtWidgets.QWidget = None, title: str = "Please Confirm"):
        self._parent = parent
        self._title = title

    def __call__(self, message: str) -> bool:
        resp = QtWidgets.QMessageBox.question(
            self._parent,
            self._title,
            message,
            QtWidgets.QMessageBox.Yes | QtWidgets.QMessageBox.No,
            QtWidgets.QMessageBox.No,
        )
        return resp == QtWidgets.QMessageBox.Yes

