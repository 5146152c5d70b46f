class Arn(object):
    """Parsed form of an AWS resource name.

    arn:aws:lambda:us-east-1:123597598159:function:my-lambda:1
    """

    def __init__(self, partition, service, region, account_id, resource):
        self.partition = partition
        self.service = service
        self.region = region
        self.account_id = account_id
        self.resource = resource


def parse_arn(arn):
    """Split an ARN into its sections, raising ValueError when it is not one"""
    if not isinstance(arn, str) or not arn.startswith("arn:"):
        raise ValueError(f"arn: invalid prefix: {arn!r}")
    sections = arn.split(":", 5)
    if len(sections) != 6:
        raise ValueError(f"arn: not enough sections: {arn!r}")
    _, partition, service, region, account_id, resource = sections
    return Arn(partition, service, region, account_id, resource)
