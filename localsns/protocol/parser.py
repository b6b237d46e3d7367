"""
Request parser for the query protocol.

Requests are form-encoded, flat key/value pairs. Scalar members are sent under their own name (f.e. ``TopicArn``),
lists of records are sent as indexed groups:
::
  Attributes.entry.1.key=DisplayName
  Attributes.entry.1.value=my-topic
  Tags.member.1.Key=env
  Tags.member.1.Value=dev
  TagKeys.member.1=env
::
The indices are 1-based and may arrive in any order or with gaps. The parser works in two passes: it first classifies
every key into the group it belongs to, and then assembles each group into a list, padded with empty placeholder
records where an index was skipped.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple, TypedDict, Union

from werkzeug.datastructures import MultiDict
from werkzeug.wrappers import Request

LOG = logging.getLogger(__name__)

# ASCII digits only, str.isdigit also accepts superscripts and other scripts
INDEX_REGEX = re.compile(r"[0-9]+")


class AttributeEntry(TypedDict):
    key: str
    value: str


class Tag(TypedDict):
    Key: str
    Value: str


TagKey = str

Params = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


class IndexedGroup(NamedTuple):
    """
    Describes an indexed group parameter, f.e. ``Tags.member.<n>.<field>``.
    If ``fields`` is None, the group is a plain list of strings (``TagKeys.member.<n>``).
    """

    prefix: str
    fields: Optional[Tuple[str, ...]]

    @property
    def suffix_segments(self) -> int:
        return 2 if self.fields is None else 3

    def placeholder(self) -> Any:
        if self.fields is None:
            return ""
        return {field_name: "" for field_name in self.fields}


ATTRIBUTES_GROUP = IndexedGroup("Attributes.entry", ("key", "value"))
TAGS_GROUP = IndexedGroup("Tags.member", ("Key", "Value"))
TAG_KEYS_GROUP = IndexedGroup("TagKeys.member", None)

# request member name -> group
INDEXED_GROUPS: Dict[str, IndexedGroup] = {
    "attributes": ATTRIBUTES_GROUP,
    "tags": TAGS_GROUP,
    "tag_keys": TAG_KEYS_GROUP,
}

# request member name -> scalar parameter name
SCALAR_PARAMS: Dict[str, str] = {
    "action": "Action",
    "name": "Name",
    "topic_arn": "TopicArn",
    "endpoint": "Endpoint",
    "protocol": "Protocol",
    "subscription_arn": "SubscriptionArn",
    "message": "Message",
    "subject": "Subject",
    "resource_arn": "ResourceArn",
    "attribute_name": "AttributeName",
    "attribute_value": "AttributeValue",
}


@dataclass
class SnsRequest:
    action: Optional[str] = None
    name: Optional[str] = None
    topic_arn: Optional[str] = None
    endpoint: Optional[str] = None
    protocol: Optional[str] = None
    subscription_arn: Optional[str] = None
    message: Optional[str] = None
    subject: Optional[str] = None
    resource_arn: Optional[str] = None
    attribute_name: Optional[str] = None
    attribute_value: Optional[str] = None
    attributes: Optional[List[AttributeEntry]] = None
    tags: Optional[List[Tag]] = None
    tag_keys: Optional[List[TagKey]] = None
    # all parameters which were not recognized
    unknown: Dict[str, str] = field(default_factory=dict)


def _iter_params(params: Params) -> Iterable[Tuple[str, str]]:
    if isinstance(params, MultiDict):
        return params.items(multi=True)
    if isinstance(params, Mapping):
        return params.items()
    return params


def _parse_index(index: str) -> Optional[int]:
    """Returns the 1-based index, or None if it is not a positive decimal number."""
    if not INDEX_REGEX.fullmatch(index):
        return None
    value = int(index)
    return value if value > 0 else None


def _classify_key(key: str) -> Optional[Tuple[str, int, Optional[str]]]:
    """
    Matches the key against all indexed groups.

    :return: a tuple of (member name, index, field name) if the key belongs to a group, None otherwise.
    """
    for member_name, group in INDEXED_GROUPS.items():
        if not key.startswith(group.prefix + "."):
            continue
        segments = key[len(group.prefix) + 1 :].split(".")
        if len(segments) != group.suffix_segments - 1:
            continue
        index = _parse_index(segments[0])
        if index is None:
            LOG.debug("Ignoring parameter %s with invalid index", key)
            return None
        field_name = None
        if group.fields is not None:
            field_name = segments[1]
            if field_name not in group.fields:
                return None
        return member_name, index, field_name
    return None


def parse_indexed_groups(params: Params) -> Dict[str, Optional[list]]:
    """
    Assembles all indexed groups of the given parameters. Groups without any matching key are None, so that a missing
    group can be told apart from an empty one. If the same (index, field) pair occurs more than once, the last
    occurrence wins.

    :param params: the raw request parameters, either a mapping or an iterable of key/value pairs
    :return: a dict of request member name to the assembled list (or None)
    """
    # first pass: classify
    classified: Dict[str, List[Tuple[int, Optional[str], str]]] = {}
    for key, value in _iter_params(params):
        match = _classify_key(key)
        if match is None:
            continue
        member_name, index, field_name = match
        classified.setdefault(member_name, []).append((index, field_name, value))

    # second pass: assemble
    result: Dict[str, Optional[list]] = {}
    for member_name, group in INDEXED_GROUPS.items():
        entries = classified.get(member_name)
        if not entries:
            result[member_name] = None
            continue
        records = []
        for index, field_name, value in entries:
            while len(records) < index:
                records.append(group.placeholder())
            if field_name is None:
                records[index - 1] = value
            else:
                records[index - 1][field_name] = value
        result[member_name] = records
    return result


def parse_request(params: Params) -> SnsRequest:
    """
    Parses the raw form parameters of a request into an ``SnsRequest``.
    """
    scalars: Dict[str, str] = {}
    unknown: Dict[str, str] = {}
    known_names = {param_name: member for member, param_name in SCALAR_PARAMS.items()}
    pairs = list(_iter_params(params))

    for key, value in pairs:
        if member := known_names.get(key):
            scalars[member] = value
        elif _classify_key(key) is None:
            unknown[key] = value

    if unknown:
        LOG.debug("Ignoring unknown parameters: %s", list(unknown.keys()))

    return SnsRequest(**scalars, **parse_indexed_groups(pairs), unknown=unknown)


def parse_http_request(request: Request) -> SnsRequest:
    return parse_request(request.form)
