"""
Base importer interface for blockflow.

This module defines the abstract interface every automation source must
implement: produce a name and a list of Block models the editor can load.
"""

from abc import ABC, abstractmethod
from typing import List

from ..models import Block


class BaseImporter(ABC):
    """
    Abstract base class for all automation importers.

    Each importer converts an automation from some source (a YAML or JSON
    document, a built-in template, ...) into Block models.
    """

    @abstractmethod
    def get_blocks(self) -> List[Block]:
        """
        Retrieve the automation's blocks.

        Returns:
            List of Block objects, connections included
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """
        Retrieve the automation's display name.

        Returns:
            The name to save the automation under
        """
        pass
