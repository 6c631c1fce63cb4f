"""
XAF Structural Parser

Reads an XML Auditfile Financieel without a schema. Record sets are found
structurally: any child of ``company`` whose first two children share a tag
is treated as a list of records and becomes a table. Journal transactions
and their ``trLine`` items are written to ``transactions`` and ``trLines``,
linked through a ``transaction_id`` column.
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from database_builder import PRIMARY_KEY_COLUMN, SQLiteSink
from .errors import StructuralError
from .identifiers import deduplicate, sanitize, table_name
from .table_writer import TableWriter
from .value_coercion import coerce

logger = logging.getLogger(__name__)

COMPANY_TAG = 'company'
TRANSACTION_TAG = 'transaction'
TRLINE_TAG = 'trLine'
TRANSACTIONS_TABLE = 'transactions'
TRLINES_TABLE = 'trLines'
TRANSACTION_ID_COLUMN = 'transaction_id'

# Handled by the transaction pass so trLines keep their parent link.
EXCLUDED_CONTAINERS = ('transactions', 'journal')

Record = Dict[str, Optional[str]]


def local_name(tag: str) -> str:
    """Strip the ``{namespace}`` part of an ElementTree tag."""
    if tag.startswith('{'):
        return tag.split('}', 1)[1]
    return tag


def namespace_of(tag: str) -> str:
    if tag.startswith('{'):
        return tag[1:].split('}', 1)[0]
    return ''


def qualified(namespace: str, name: str) -> str:
    return f'{{{namespace}}}{name}' if namespace else name


def is_plural_container(element: ET.Element) -> bool:
    """
    True if the element looks like a list of repeated records.

    The element needs at least two children and the first two must share
    a tag; children with different tags are never treated as a list.
    """
    children = list(element)
    return len(children) > 1 and children[0].tag == children[1].tag


def _text(element: ET.Element) -> Optional[str]:
    return coerce((element.text or '').strip())


def _flattened_text(element: ET.Element) -> Optional[str]:
    """Text of a leaf, or the space-joined non-empty texts of its immediate children."""
    children = list(element)
    if not children:
        return _text(element)
    texts = ((child.text or '').strip() for child in children)
    return coerce([text for text in texts if text])


def extract_record(
    element: ET.Element,
    reserved: Iterable[str] = (PRIMARY_KEY_COLUMN,),
    exclude: Iterable[str] = ()
) -> Record:
    """
    Flatten a record element into column/value pairs.

    Each direct child becomes a column named after its tag. A child with
    element children of its own contributes one ``<child>_<grandchild>``
    column per grandchild instead; nesting below that is not expanded.

    Args:
        element: The record element (e.g. a ``customerSupplier``)
        reserved: Column names taken by synthesized columns
        exclude: Local tag names of children to leave out

    Returns:
        Ordered mapping of unique column name to coerced value
    """
    excluded = set(exclude)
    names: List[str] = []
    values: List[Optional[str]] = []

    for child in element:
        child_name = local_name(child.tag)
        if child_name in excluded:
            continue
        grandchildren = list(child)
        if not grandchildren:
            names.append(sanitize(child_name))
            values.append(_text(child))
            continue
        for grandchild in grandchildren:
            names.append(sanitize(f"{child_name}_{local_name(grandchild.tag)}"))
            values.append(_flattened_text(grandchild))

    return dict(zip(deduplicate(names, reserved), values))


class XafParser:
    """Writes the record sets of an audit file into a sink."""

    def __init__(self, sink: SQLiteSink):
        self.sink = sink
        self._writers: Dict[str, TableWriter] = {}
        self._columns: Dict[str, List[str]] = {}

    def ingest(self, file_path: Path, prefix: Optional[str] = None) -> Dict[str, int]:
        """
        Ingest every company of an audit file.

        Args:
            file_path: Source ``.xaf`` document
            prefix: Optional table-name prefix

        Returns:
            Mapping of table name to rows inserted

        Raises:
            StructuralError: If the document is not XML or has no company
        """
        companies = self._find_companies(Path(file_path))
        self._writers = {}
        self._columns = {}

        for company in companies:
            self._ingest_containers(company, prefix)
            self._ingest_transactions(company, prefix)

        return {name: writer.finish() for name, writer in self._writers.items()}

    def _find_companies(self, file_path: Path) -> List[ET.Element]:
        try:
            root = ET.parse(str(file_path)).getroot()
        except ET.ParseError as e:
            raise StructuralError(f"Could not parse {file_path} as XML: {e}") from e

        companies = [element for element in root.iter() if local_name(element.tag) == COMPANY_TAG]
        if not companies:
            raise StructuralError(f"No {COMPANY_TAG} element found in {file_path}")
        return companies

    def _writer(
        self,
        name: str,
        first_record: Record,
        integer_columns: Tuple[str, ...] = ()
    ) -> TableWriter:
        """Declare a table from its first record, once per run."""
        if name not in self._writers:
            columns = [column for column in first_record if column not in integer_columns]
            self._writers[name] = TableWriter(self.sink, name, columns, integer_columns)
            self._columns[name] = columns
        return self._writers[name]

    def _insert(self, name: str, record: Record, leading: Tuple = ()) -> Optional[int]:
        # Fixed column list: absent keys become NULL, extra keys are dropped
        values = list(leading) + [record.get(column) for column in self._columns[name]]
        return self._writers[name].insert(values)

    def _ingest_containers(self, company: ET.Element, prefix: Optional[str]) -> None:
        for container in company:
            container_name = local_name(container.tag)
            if container_name in EXCLUDED_CONTAINERS or not is_plural_container(container):
                continue

            name = table_name(container_name, prefix)
            records = [extract_record(child) for child in container]
            self._writer(name, records[0])
            for record in records:
                self._insert(name, record)
            logger.debug("Container %s yielded %d records", container_name, len(records))

    def _ingest_transactions(self, company: ET.Element, prefix: Optional[str]) -> None:
        namespace = namespace_of(company.tag)
        transaction_tag = qualified(namespace, TRANSACTION_TAG)
        trline_tag = qualified(namespace, TRLINE_TAG)

        transactions = list(company.iter(transaction_tag))
        if not transactions:
            return

        transactions_name = table_name(TRANSACTIONS_TABLE, prefix)
        trlines_name = table_name(TRLINES_TABLE, prefix)
        trline_reserved = (PRIMARY_KEY_COLUMN, TRANSACTION_ID_COLUMN)

        self._writer(transactions_name, extract_record(transactions[0], exclude=(TRLINE_TAG,)))
        first_trline = next(company.iter(trline_tag), None)
        if first_trline is not None:
            self._writer(
                trlines_name,
                extract_record(first_trline, reserved=trline_reserved),
                integer_columns=(TRANSACTION_ID_COLUMN,)
            )

        for transaction in transactions:
            record = extract_record(transaction, exclude=(TRLINE_TAG,))
            # The id SQLite assigns links the lines; on a fresh table it is
            # the transaction's 1-based position in the document.
            transaction_id = self._insert(transactions_name, record)
            for trline in transaction.findall(trline_tag):
                self._insert(
                    trlines_name,
                    extract_record(trline, reserved=trline_reserved),
                    leading=(transaction_id,)
                )
