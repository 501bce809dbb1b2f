import uvicorn
import socket

def get_local_ip():
    """LAN IP of this machine"""
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        s.connect(("8.8.8.8", 80))
        ip = s.getsockname()[0]
        s.close()
        return ip
    except OSError:
        return "127.0.0.1"

if __name__ == "__main__":
    local_ip = get_local_ip()

    print("=" * 50)
    print("YourVoice API server")
    print("=" * 50)
    print(f"   • http://127.0.0.1:8000")
    print(f"   • http://{local_ip}:8000")
    print(f"   • Docs: http://{local_ip}:8000/docs")
    print(f"   • Health: http://{local_ip}:8000/health")
    print("   • Ctrl+C to stop")
    print("=" * 50)

    uvicorn.run(
        "yourvoice.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
