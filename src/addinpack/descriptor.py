"""Bundle descriptor (``manifest.xml``) generation.

The host application's loader reads the descriptor to pick the binary for
its platform. The document is built line by line so its bytes are stable::

    <?xml version="1.0" encoding="UTF-8" ?>
    <bundle xmlns="http://v8.1c.ru/8.2/addin/bundle" name="CommonAddin">
    \t<component os="Windows" path="common_addin.win32.20240506070809.dll" type="native" arch="i386" />
    </bundle>
"""

from __future__ import annotations

from xml.sax.saxutils import escape

from addinpack.exceptions import BundleError
from addinpack.models import CompiledArtifact

COMPONENT_TYPE = "native"

_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8" ?>\n'


def _attr(value: str) -> str:
    return escape(value, {'"': "&quot;"})


class Descriptor:
    """Append-only descriptor document.

    Components are added in processing order and only from a
    :class:`~addinpack.models.CompiledArtifact`, so no target can appear
    before its binary exists. :meth:`seal` closes the root element; the
    document is not valid before that and cannot be extended after.

    Args:
        bundle_name: Value of the root element's ``name`` attribute.
        namespace: Value of the root element's ``xmlns`` attribute.
    """

    def __init__(self, bundle_name: str, namespace: str) -> None:
        self._lines: list[str] = [
            _XML_DECLARATION,
            f'<bundle xmlns="{_attr(namespace)}" name="{_attr(bundle_name)}">\n',
        ]
        self._count = 0
        self._sealed = False

    @property
    def component_count(self) -> int:
        return self._count

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    def add(self, artifact: CompiledArtifact) -> None:
        """Append a ``component`` element for *artifact*.

        Raises:
            BundleError: If the descriptor has already been sealed.
        """
        if self._sealed:
            raise BundleError("Descriptor is sealed; no more components can be added")
        target = artifact.target
        self._lines.append(
            f'\t<component os="{_attr(target.os)}" path="{_attr(artifact.entry_name)}" '
            f'type="{COMPONENT_TYPE}" arch="{_attr(target.arch)}" />\n'
        )
        self._count += 1

    def seal(self) -> bytes:
        """Close the root element and return the UTF-8 encoded document.

        Raises:
            BundleError: If called more than once.
        """
        if self._sealed:
            raise BundleError("Descriptor is already sealed")
        self._lines.append("</bundle>\n")
        self._sealed = True
        return self.render()

    def render(self) -> bytes:
        """Return the document as it currently stands."""
        return "".join(self._lines).encode("utf-8")
