import logging

logger = logging.getLogger(__name__)


def parse_trace_root(raw_trace_id):
    """Return the Root of an X-Ray trace header, or "" when it is malformed

    Example:
    Root=1-5e272390-8c398be037738dc042009320;Parent=94ae789b969f1cc5;Sampled=1
    """
    logger.debug("Reading trace root from header %s", raw_trace_id)
    if not raw_trace_id:
        return ""
    parts = raw_trace_id.split(";", 1)
    if len(parts) < 2:
        return ""
    root = parts[0].split("=", 1)
    if len(root) < 2:
        return ""
    return root[1]


def parse_transaction_id(root):
    """1-5759e988-bd862e3fe1be46a994272793 -> bd862e3fe1be46a994272793"""
    if not root:
        return ""
    items = root.split("-", 2)
    if len(items) < 3:
        return ""
    return items[2]
