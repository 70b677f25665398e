import functools
import time
from random import uniform
from typing import Dict, Optional

from botocore.exceptions import ClientError

from chalicelib.config import get_settings
from chalicelib.utils import exceptions
from chalicelib.utils.boto_clients import dynamodb_resource
from chalicelib.utils.logger import logger, log_exception

# For safe db operations
RETRY_EXCEPTIONS = ('ProvisionedThroughputExceededException', 'ThrottlingException')
need_return_capacity = ('put_item', 'get_item', 'update_item', 'delete_item', 'query')
MAX_RETRIES = 8
MAX_BACKOFF_SECONDS = 5


class ConditionNotMet(Exception):
    """
    ConditionExpression of a write evaluated to false
    """
    pass


def error_code(error: ClientError) -> str:
    return error.response.get('Error', {}).get('Code', '')


def exp_db_backoff(func):
    """
        should be used for any atomic
        get/put item in the code
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger.debug(f'{func.__name__}:: args={args}, kwargs={kwargs}')
        if func.__name__ not in need_return_capacity:
            raise RuntimeError("This decorator only for DynamoDB methods")
        kwargs.update({'ReturnConsumedCapacity': 'TOTAL'})

        for retries in range(MAX_RETRIES):
            try:
                result = func(*args, **kwargs)
                logger.info(f'{func.__name__}:: SUCCESS')
                return result
            except ClientError as e:
                if error_code(e) not in RETRY_EXCEPTIONS:
                    if error_code(e) != 'ConditionalCheckFailedException':
                        log_exception(e, msg=f'Got exception while trying to {func.__name__}: ')
                    raise
                timeout = min(MAX_BACKOFF_SECONDS, uniform(0.1, 0.99) * 2 ** retries)
                logger.warning(f'{func.__name__}:: throttled, retry {retries + 1}/{MAX_RETRIES} in {timeout:.2f}s')
                time.sleep(timeout)

        raise exceptions.NumberOfRetriesExceeded(
            f"MaxNumber={MAX_RETRIES} of DB retries has exceeded"
        )

    return wrapper


def get_table(table_name: str):
    table = dynamodb_resource().Table(table_name)

    table.put_item = exp_db_backoff(table.put_item)
    table.get_item = exp_db_backoff(table.get_item)
    table.update_item = exp_db_backoff(table.update_item)
    table.delete_item = exp_db_backoff(table.delete_item)
    table.query = exp_db_backoff(table.query)

    return table


def get_gen_table():
    return get_table(get_settings().table_name)


def put_db_record(item: dict, condition_expression: Optional[str] = None, table=get_gen_table):
    kwargs = {'Item': item}
    if condition_expression:
        kwargs['ConditionExpression'] = condition_expression
    try:
        table().put_item(**kwargs)
    except ClientError as error:
        if error_code(error) == 'ConditionalCheckFailedException':
            raise ConditionNotMet(f"put_db_record ::: condition {condition_expression} failed")
        raise


def update_db_item(key: dict, update_expression: str, expr_attr_values: Optional[Dict] = None,
                   expr_attr_names: Optional[Dict] = None, condition_expression: Optional[str] = None,
                   return_values: str = 'ALL_NEW', table=get_gen_table) -> Dict:
    kwargs = {'Key': key, 'UpdateExpression': update_expression, 'ReturnValues': return_values}
    if expr_attr_values:
        kwargs['ExpressionAttributeValues'] = expr_attr_values
    if expr_attr_names:
        kwargs['ExpressionAttributeNames'] = expr_attr_names
    if condition_expression:
        kwargs['ConditionExpression'] = condition_expression
    try:
        response = table().update_item(**kwargs)
    except ClientError as error:
        if error_code(error) == 'ConditionalCheckFailedException':
            raise ConditionNotMet(f"update_db_item ::: {key=} condition {condition_expression} failed")
        raise
    return response.get('Attributes', {})


def delete_db_item(partkey, sortkey, table=get_gen_table):
    table().delete_item(
        Key={
            'partkey': partkey,
            'sortkey': sortkey
        }
    )


def get_db_item(partkey, sortkey, table=get_gen_table):
    result = table().get_item(
        Key={
            'partkey': partkey,
            'sortkey': sortkey
        }
    )

    if 'Item' in result:
        return result['Item']
    else:
        logger.warning(f"get_db_item ::: record partkey={partkey} sortkey={sortkey} not found")
        raise exceptions.RecordNotFound(f'record partkey={partkey} sortkey={sortkey} not found')


def query_items_paginated(
        key_condition_expression,
        filter_expression=None,
        projection_expression=None,
        table=get_gen_table,
        index_name=None,
        expr_attr_names=None,
        limit=None,
        start_key=None,
        scan_index_forward=True
):
    kwargs = {'KeyConditionExpression': key_condition_expression, 'ScanIndexForward': scan_index_forward}
    if filter_expression:
        kwargs.update({'FilterExpression': filter_expression})

    if projection_expression:
        kwargs.update({'ProjectionExpression': projection_expression})

    if expr_attr_names:
        kwargs.update({'ExpressionAttributeNames': expr_attr_names})

    if limit:
        kwargs.update({'Limit': int(limit)})

    if index_name:
        kwargs.update({'IndexName': index_name})

    if start_key:
        kwargs.update({'ExclusiveStartKey': start_key})

    resp = table().query(**kwargs)
    return resp['Items'], resp.get('LastEvaluatedKey')


def query_items_paged(key_condition_expression, filter_expression=None, projection_expression=None,
                      table=get_gen_table, index_name=None, expr_attr_names=None):
    """ This method shall be used whenever you think the query will
        return more than 1mb of data at once"""
    all_items = []
    items, last_evaluated_key = query_items_paginated(
        key_condition_expression,
        filter_expression=filter_expression,
        projection_expression=projection_expression,
        table=table,
        index_name=index_name,
        expr_attr_names=expr_attr_names
    )
    all_items.extend(items)

    while last_evaluated_key is not None:
        items, last_evaluated_key = query_items_paginated(
            key_condition_expression,
            filter_expression=filter_expression,
            projection_expression=projection_expression,
            table=table,
            index_name=index_name,
            expr_attr_names=expr_attr_names,
            start_key=last_evaluated_key
        )
        all_items.extend(items)

    return all_items
