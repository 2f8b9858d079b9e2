from urlshortener.dao.base import UrlRecordBaseDAO


__all__ = ['UrlRecordBaseDAO']
