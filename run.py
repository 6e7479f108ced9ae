#!/usr/bin/env python3
"""
Cutiscura 애플리케이션 실행 스크립트
"""

from cutiscura_app import create_app

if __name__ == '__main__':
    app = create_app()
    app.run(debug=app.config.get('DEBUG', False), port=app.config['PORT'])
