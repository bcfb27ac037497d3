"""QR code payload and image rendering."""
import base64
import io
import json
from typing import Dict

import qrcode


class QRService:
    """Service for QR code operations."""
    
    @staticmethod
    def build_payload(ticket) -> Dict:
        """Payload a student's scanner needs to present the ticket."""
        return {
            'ticketId': ticket.id,
            'token': ticket.token,
            'subject': ticket.subject,
            'date': ticket.schedule_start.date().isoformat(),
            'scheduleStart': ticket.schedule_start.strftime('%H:%M'),
            'scheduleEnd': ticket.schedule_end.strftime('%H:%M')
        }
    
    @staticmethod
    def render_image(payload: Dict) -> str:
        """Render payload as a PNG data URL."""
        qr_string = json.dumps(payload, separators=(',', ':'))
        
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=2,
        )
        qr.add_data(qr_string)
        qr.make(fit=True)
        
        img = qr.make_image(fill_color="black", back_color="white")
        
        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()
        
        return f"data:image/png;base64,{img_str}"
