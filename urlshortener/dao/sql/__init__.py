from urlshortener.dao.sql.connector import DatabaseConnector
from urlshortener.dao.sql.url_record_sql_dao import UrlRecordSQLDAO


__all__ = [
    'DatabaseConnector',
    'UrlRecordSQLDAO',
]
