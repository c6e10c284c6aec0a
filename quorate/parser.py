"""Tools for parsing XML data into Python models."""

import typing as t

import xml.etree.ElementTree as etree

from quorate.exceptions import DecodeError

__all__ = ["NodeParse", "as_xml", "content", "sequence"]

T = t.TypeVar("T")


def as_xml(data: str) -> etree.Element:
    """Parse the given data as XML and returns the root node"""
    try:
        return etree.fromstring(data)
    except etree.ParseError as error:
        raise DecodeError(
            f"Tried to parse malformed data as XML. Error: {error}, Got data: '{data}'"
        ) from error


class NodeParse:
    """Class to ease the transformation from XML data to a Python object."""

    def __init__(self, node: etree.Element) -> None:
        """Wraps a root node"""
        self.node = node

        child_tags: t.MutableMapping[str, t.MutableSequence[etree.Element]] = {}
        for child in node:
            child_tags.setdefault(child.tag, []).append(child)

        # 'Freeze' the child tags attribute so that it appears immutable
        self.child_tags: t.Mapping[str, t.Sequence[etree.Element]] = child_tags

    def has_name(self, name: str) -> bool:
        """Checks whether the given name is a tag of one of the child nodes."""
        return name in self.child_tags

    def from_name(self, name: str) -> t.Sequence[etree.Element]:
        """Returns a sequence of all nodes that have the given tag.
        Missing tags produce an empty sequence, since NS omits empty shards.
        """
        return self.child_tags.get(name, ())

    def first(self, name: str) -> etree.Element:
        """Returns the first node with the given tag.
        Raises DecodeError if there is no such node.
        """
        try:
            return self.child_tags[name][0]
        except KeyError as error:
            raise DecodeError(
                f"Expected a <{name}> node inside <{self.node.tag}>"
            ) from error

    def simple(self, name: str) -> str:
        """Returns the text content of the first subnode with a matching tag"""
        return content(self.first(name))

    def integer(self, name: str, default: t.Optional[int] = None) -> int:
        """Returns the content of the first matching subnode as an int.
        Decimal text such as "12.00" (used by census scores) is truncated.
        Empty text returns default, if one is given.
        """
        text = self.simple(name).strip()
        if not text and default is not None:
            return default
        try:
            return int(float(text))
        except ValueError as error:
            raise DecodeError(
                f"Expected a number in <{name}>, got '{text}'"
            ) from error


def content(node: etree.Element) -> str:
    """Function to parse simple tags that contain the data as text"""
    return node.text if node.text else ""


def sequence(node: etree.Element, key: t.Callable[[etree.Element], T]) -> t.Sequence[T]:
    """Traverses the subnodes of a given node,
    retrieving the result from the key function for each child.
    """
    return [key(sub) for sub in node]
