"""
Core — Response Renderer

Wraps successful responses in the ledger envelope:
  { "success": true, "data": ..., "meta": ... }

Error responses are already shaped by standard_exception_handler and
pass through untouched; empty responses (204) stay empty.

@file core/renderers.py
"""

from rest_framework.renderers import JSONRenderer


class StandardJSONRenderer(JSONRenderer):

    def render(self, data, accepted_media_type=None, renderer_context=None):
        if data is None:
            return b''

        response = (renderer_context or {}).get('response')
        if response is not None and response.status_code >= 400:
            return super().render(data, accepted_media_type, renderer_context)
        if isinstance(data, dict) and 'success' in data:
            return super().render(data, accepted_media_type, renderer_context)

        envelope = {'success': True, 'data': data}
        if isinstance(data, dict) and 'results' in data:
            envelope['data'] = data['results']
            envelope['meta'] = {
                'count': data.get('count'),
                'pages': data.get('pages'),
                'next': data.get('next'),
                'previous': data.get('previous'),
            }
        return super().render(envelope, accepted_media_type, renderer_context)
