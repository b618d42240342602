"""Builds register engines from application configuration."""
import os
from typing import Any, Mapping

from pos_register.services.discount_client import DiscountApiConfig
from pos_register.services.discount_service import DiscountResolver
from pos_register.services.journal_client import JournalClientConfig
from pos_register.services.journal_service import JournalReplicator
from pos_register.services.persistence_gateway import TransactionGateway
from pos_register.services.register_service import RegisterEngine


def journal_path_for(config: Mapping[str, Any], terminal_id: str) -> str:
    """The configured journal file for the default register, a suffixed one for others."""
    path = config.get('JOURNAL_FILE', 'register_journal.txt')
    if terminal_id == config.get('REGISTER_ID', 'REG-001'):
        return path
    root, ext = os.path.splitext(path)
    return f"{root}-{terminal_id}{ext or '.txt'}"


def build_engine(config: Mapping[str, Any], session, terminal_id: str = None) -> RegisterEngine:
    """Wire gateway, discount resolver and journal for one terminal."""
    terminal_id = terminal_id or config.get('REGISTER_ID', 'REG-001')

    journal_config = JournalClientConfig.from_mapping(config)

    return RegisterEngine(
        gateway=TransactionGateway(session),
        discount_resolver=DiscountResolver(DiscountApiConfig.from_mapping(config)),
        journal=JournalReplicator(journal_path_for(config, terminal_id), client_config=journal_config),
    )
