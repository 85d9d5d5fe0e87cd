# coding: utf-8
"""
Landing page content (hero, features, testimonials, footer)

Served as-is by the public config endpoints.
"""

from typing import Dict, List, Any


HERO: Dict[str, Any] = {
    "badge": "🔥 Transformação Corporal com IA",
    "headline": ["DESTRUA", "SEUS LIMITES", "COM IA"],
    "subheadline": (
        "💪 Personal trainer IA 24/7 que cria treinos intensos, acompanha cada "
        "repetição e acelera seus resultados."
    ),
    "cta_primary": "Começar Agora",
    "cta_secondary": "Ver Planos",
}

FEATURES: List[Dict[str, str]] = [
    {
        "title": "IA Personal Trainer",
        "description": "Assistente virtual inteligente que cria treinos personalizados baseados no seu perfil, objetivos e evolução.",
    },
    {
        "title": "Treinos Adaptativos",
        "description": "Planos que evoluem com você. A IA ajusta exercícios, séries e cargas conforme seu progresso.",
    },
    {
        "title": "Nutrição Inteligente",
        "description": "Dicas personalizadas de alimentação e receitas saudáveis baseadas no seu estilo de vida.",
    },
    {
        "title": "Análise de Progresso",
        "description": "Acompanhe sua evolução com gráficos detalhados e insights inteligentes sobre seu desempenho.",
    },
    {
        "title": "Comunidade Ativa",
        "description": "Conecte-se com outros usuários, compartilhe conquistas e encontre motivação na comunidade.",
    },
    {
        "title": "Dados Seguros",
        "description": "Seus dados pessoais e de saúde são protegidos com criptografia.",
    },
    {
        "title": "App Responsivo",
        "description": "Acesse de qualquer dispositivo. Design otimizado para celular, tablet e desktop.",
    },
    {
        "title": "Resultados Rápidos",
        "description": "Metodologia comprovada que gera resultados visíveis nas primeiras semanas de treino.",
    },
]

TESTIMONIALS: List[Dict[str, Any]] = [
    {
        "name": "Maria Silva",
        "age": 32,
        "profession": "Advogada",
        "rating": 5,
        "text": "Em 2 meses perdi 8kg e ganhei muito mais disposição. A IA realmente entende o que eu preciso!",
        "result": "8kg perdidos",
        "timeframe": "2 meses",
    },
    {
        "name": "João Santos",
        "age": 28,
        "profession": "Engenheiro",
        "rating": 5,
        "text": "Nunca consegui manter uma rotina de exercícios, mas com o FitAI Pro tudo ficou natural e divertido.",
        "result": "15kg de massa muscular",
        "timeframe": "4 meses",
    },
    {
        "name": "Ana Costa",
        "age": 35,
        "profession": "Médica",
        "rating": 5,
        "text": "Como médica, posso afirmar que os planos são cientificamente embasados. Resultados incríveis!",
        "result": "Melhor forma física",
        "timeframe": "3 meses",
    },
]

FOOTER: Dict[str, Any] = {
    "links": [
        {"label": "Início", "href": "#home"},
        {"label": "Recursos", "href": "#features"},
        {"label": "Preços", "href": "#pricing"},
    ],
    "legal": [
        {"label": "Política de Privacidade", "href": "/privacidade"},
        {"label": "Termos de Uso", "href": "/termos"},
    ],
    "copyright": "© FitAI Pro. Todos os direitos reservados.",
}
