"""Prompts for synthetic row generation."""
from typing import Iterable

from langchain_core.prompts import ChatPromptTemplate

from conndata.adapters.models import DatabaseColumn

SYSTEM_PROMPT = (
    "You generate data in JSON format. "
    "Generate {count} records in a json array located on the data key"
)

USER_PROMPT = "{user_prompt}\nEach record looks like this: {columns}"

GENERATE_ROWS_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", SYSTEM_PROMPT),
        ("human", USER_PROMPT),
    ]
)


def describe_columns(columns: Iterable[DatabaseColumn]) -> str:
    """``"id is integer,name is text"``; object-store columns have an empty type."""
    return ",".join(f"{col.column} is {col.data_type}" for col in columns)
