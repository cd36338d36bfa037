"""
Websocket authentication from an access token in the query string
(``ws/notifications/?token=<access>``).
"""

import logging
from urllib.parse import parse_qs
from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger('incampus')


@database_sync_to_async
def get_user_for_token(raw_token):
    try:
        token = AccessToken(raw_token)
    except TokenError as e:
        logger.warning(f"Rejected websocket token: {str(e)}")
        return AnonymousUser()

    User = get_user_model()
    user_id = token.get(api_settings.USER_ID_CLAIM)
    user = User.objects.filter(**{api_settings.USER_ID_FIELD: user_id}, is_active=True).first()
    return user or AnonymousUser()


class JWTAuthMiddleware(BaseMiddleware):
    async def __call__(self, scope, receive, send):
        query = parse_qs(scope.get('query_string', b'').decode())
        tokens = query.get('token')
        scope = dict(scope)
        if tokens:
            scope['user'] = await get_user_for_token(tokens[0])
        else:
            scope['user'] = AnonymousUser()
        return await super().__call__(scope, receive, send)
