"""
Response serializer for the query protocol.

Successful responses look like this:
::
  <CreateTopicResponse xmlns="https://sns.amazonaws.com/doc/2010-03-31/">
    <CreateTopicResult>
      <TopicArn>arn:aws:sns:us-east-1:000000000000:my-topic</TopicArn>
    </CreateTopicResult>
    <ResponseMetadata>
      <RequestId>...</RequestId>
    </ResponseMetadata>
  </CreateTopicResponse>
::
Errors use a different envelope (and a different namespace, which clients expect as is):
::
  <ErrorResponse xmlns="http://sns.amazonaws.com/doc/2010-03-31/">
    <Error>
      <Type>Sender</Type>
      <Code>NotFound</Code>
      <Message>Topic not found</Message>
    </Error>
    <RequestId>...</RequestId>
  </ErrorResponse>
::
"""
import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple, Union
from xml.etree import ElementTree as ETree

from rolo import Response

from localsns.api import ServiceException
from localsns.constants import APPLICATION_XML, DEFAULT_ENCODING, SNS_ERROR_XMLNS, SNS_XMLNS

LOG = logging.getLogger(__name__)

# A result is a dict of element name to value. Values are rendered as follows:
# - str: text content
# - dict: nested elements
# - list: one "member" element per item, or one "entry" element with key/value children per (key, value) tuple
ResultValue = Union[str, Dict[str, Any], List[Union[str, Dict[str, Any], Tuple[str, str]]]]


def gen_request_id() -> str:
    return str(uuid.uuid4())


class QueryResponseSerializer:
    """
    The ``QueryResponseSerializer`` turns the result of an action (or a ``ServiceException``) into an XML response.
    Every serialized response carries a freshly generated request ID.
    """

    def serialize_to_response(
        self, result: Optional[Dict[str, ResultValue]], operation: str
    ) -> Response:
        """
        Serializes the result of the given operation.

        :param result: the result members, or None if the operation does not return a result element
        :param operation: the name of the action, f.e. ``CreateTopic``
        :return: the response with status code 200
        """
        root = ETree.Element(f"{operation}Response", {"xmlns": SNS_XMLNS})
        if result is not None:
            result_node = ETree.SubElement(root, f"{operation}Result")
            self._serialize_members(result_node, result)
        self._prepare_additional_traits_in_xml(root)

        response = self._create_default_response()
        response.set_response(self._xml_to_string(root))
        return response

    def serialize_error_to_response(self, error: ServiceException) -> Response:
        root = ETree.Element("ErrorResponse", {"xmlns": SNS_ERROR_XMLNS})
        error_tag = ETree.SubElement(root, "Error")
        self._add_error_tags(error, error_tag)
        request_id = ETree.SubElement(root, "RequestId")
        request_id.text = gen_request_id()

        response = self._create_default_response()
        response.status_code = error.status_code
        response.set_response(self._xml_to_string(root))
        LOG.debug("Serialized error %s (%s): %s", error.code, error.status_code, error.message)
        return response

    def _add_error_tags(self, error: ServiceException, error_tag: ETree.Element) -> None:
        # errors are always attributed to the sender
        type_tag = ETree.SubElement(error_tag, "Type")
        type_tag.text = "Sender"
        code_tag = ETree.SubElement(error_tag, "Code")
        code_tag.text = error.code
        message_tag = ETree.SubElement(error_tag, "Message")
        message_tag.text = error.message

    def _serialize_members(self, node: ETree.Element, members: Dict[str, ResultValue]) -> None:
        for name, value in members.items():
            self._serialize(node, name, value)

    def _serialize(self, parent: ETree.Element, name: str, value: ResultValue) -> None:
        if value is None:
            return
        node = ETree.SubElement(parent, name)
        if isinstance(value, dict):
            self._serialize_members(node, value)
        elif isinstance(value, list):
            self._serialize_list(node, value)
        else:
            node.text = str(value)

    def _serialize_list(self, node: ETree.Element, items: list) -> None:
        for item in items:
            if isinstance(item, tuple):
                key, value = item
                entry = ETree.SubElement(node, "entry")
                self._serialize(entry, "key", key)
                self._serialize(entry, "value", value)
            else:
                self._serialize(node, "member", item)

    def _prepare_additional_traits_in_xml(self, root: ETree.Element) -> None:
        response_metadata = ETree.SubElement(root, "ResponseMetadata")
        request_id = ETree.SubElement(response_metadata, "RequestId")
        request_id.text = gen_request_id()

    def _create_default_response(self) -> Response:
        return Response(content_type=APPLICATION_XML)

    def _xml_to_string(self, root: ETree.Element) -> bytes:
        """Generates the string representation of the given XML element."""
        return ETree.tostring(element=root, encoding=DEFAULT_ENCODING, xml_declaration=True)


def create_serializer() -> QueryResponseSerializer:
    return QueryResponseSerializer()
